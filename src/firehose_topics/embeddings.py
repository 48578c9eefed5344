"""Embeddings Generation Module

Generates vector embeddings for message text using OpenAI's embedding API.
Texts are split into full batches of ``batch_size`` which are sent to the
API concurrently on a bounded thread pool, then reassembled in batch order.

Key features:
  - Fixed-size batches dispatched in parallel (fan-out)
  - Results joined in original batch order, not completion order (fan-in)
  - Fail-fast: the first failed batch cancels pending ones and is re-raised
  - Validation of vector count and dimensionality consistency

Only full batches are embedded. A trailing remainder shorter than
``batch_size`` is dropped and its texts get no vector; callers pair vectors
with inputs by index over the embedded prefix.
"""

from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Dict, List, Optional, Sequence
import logging
import time

logger = logging.getLogger(__name__)

EMBEDDING_MODEL = "text-embedding-3-small"


def full_batches(texts: Sequence[str], batch_size: int) -> List[List[str]]:
    """Split texts into consecutive batches of exactly ``batch_size``.

    Any trailing remainder shorter than ``batch_size`` is left out.
    """
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    count = len(texts) // batch_size
    return [
        list(texts[i * batch_size : (i + 1) * batch_size]) for i in range(count)
    ]


def _embed_batch(
    client,
    batch: List[str],
    batch_idx: int,
    model: str,
    dimensions: Optional[int],
) -> List[List[float]]:
    """Embed one batch with a single API call."""
    logger.debug(
        "Calling OpenAI embeddings API: model=%s, batch=%d, size=%d",
        model, batch_idx, len(batch)
    )
    kwargs = {"model": model, "input": batch}
    if dimensions is not None:
        kwargs["dimensions"] = dimensions
    response = client.embeddings.create(**kwargs)

    vectors = [list(item.embedding) for item in response.data]
    if len(vectors) != len(batch):
        raise ValueError(
            f"Batch {batch_idx}: expected {len(batch)} vectors, got {len(vectors)}"
        )
    return vectors


def embed_texts(
    texts: Sequence[str],
    *,
    client,
    model: str = EMBEDDING_MODEL,
    dimensions: Optional[int] = None,
    batch_size: int = 250,
    max_workers: int = 8,
) -> List[List[float]]:
    """
    Generate embeddings for texts using OpenAI's API.

    Args:
        texts: Text strings to embed
        client: OpenAI client (anything exposing ``embeddings.create``)
        model: OpenAI embedding model
        dimensions: Requested output dimensionality (None = model default)
        batch_size: Number of texts per API call
        max_workers: Upper bound on concurrent API calls

    Returns:
        One vector per text of the full-batch prefix, so
        ``len(result) == (len(texts) // batch_size) * batch_size`` and
        ``result[i]`` belongs to ``texts[i]``.

    Raises:
        ValueError: If the API returns the wrong number of vectors or
            vectors of inconsistent dimension
        Exception: On OpenAI API errors (no retry)
    """
    batches = full_batches(texts, batch_size)
    dropped = len(texts) - len(batches) * batch_size

    if dropped:
        logger.warning(
            "Dropping %d trailing texts that do not fill a batch of %d",
            dropped, batch_size
        )
    if not batches:
        logger.debug("No full batch to embed; returning []")
        return []

    workers = min(max_workers, len(batches))
    logger.info(
        "Embedding %d texts in %d batches (batch_size=%d, workers=%d)",
        len(batches) * batch_size, len(batches), batch_size, workers
    )

    start = time.time()
    results: List[Optional[List[List[float]]]] = [None] * len(batches)

    # Leaving the executor block waits for in-flight calls, so nothing is
    # still running against the API once an error propagates.
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="embed") as ex:
        futures: Dict[Future, int] = {
            ex.submit(_embed_batch, client, batch, idx, model, dimensions): idx
            for idx, batch in enumerate(batches)
        }
        try:
            for fut in as_completed(futures):
                idx = futures[fut]
                results[idx] = fut.result()
                logger.debug("Batch %d/%d completed", idx + 1, len(batches))
        except Exception:
            for pending in futures:
                pending.cancel()
            logger.exception("Failed to generate embeddings for %d texts", len(texts))
            raise

    vectors: List[List[float]] = []
    for batch_vectors in results:
        vectors.extend(batch_vectors)

    expected_dim = len(vectors[0])
    for idx, vec in enumerate(vectors):
        if len(vec) != expected_dim:
            raise ValueError(
                f"Inconsistent embedding dimension at index {idx}: "
                f"expected {expected_dim}, got {len(vec)}"
            )

    logger.info(
        "✓ Generated %d embeddings (dim=%d) in %.2fs",
        len(vectors), expected_dim, time.time() - start
    )
    return vectors
