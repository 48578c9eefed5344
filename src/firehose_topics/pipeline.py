"""
Topic Clustering Pipeline for the Bluesky Firehose

Runs the one-shot analysis end to end on a single control thread:

1. Collect a bounded sample of posts from the stream
2. Embed the post texts (batched, fanned out over a thread pool)
3. Cluster the embedded posts (DBSCAN)
4. Summarize each cluster into a topic label
5. Write the chart data file

Stages run strictly one after another. Any failure aborts the run and
nothing is written: the output file is produced by the last step only.
"""

from pathlib import Path
from typing import List, Tuple
import logging
import time

from .clustering import cluster_messages
from .collector import JetstreamSource, collect_messages
from .config import PipelineConfig, build_openai_client
from .embeddings import embed_texts
from .models import EmbeddedMessage, Message, TopicSummary
from .serializer import write_chart_data
from .summarizer import summarize_clusters


logger = logging.getLogger(__name__)


def pair_embeddings(
    messages: List[Message],
    vectors: List[List[float]],
) -> List[EmbeddedMessage]:
    """Pair each vector with the message at the same index.

    ``vectors`` may be shorter than ``messages`` (trailing partial batch
    not embedded); unmatched messages are left out.
    """
    if len(vectors) > len(messages):
        raise ValueError(
            f"Got {len(vectors)} vectors for only {len(messages)} messages"
        )
    return [
        EmbeddedMessage(message=message, vector=vector)
        for message, vector in zip(messages, vectors)
    ]


def run_pipeline(
    config: PipelineConfig,
    source=None,
) -> Tuple[int, List[TopicSummary], Path]:
    """
    Run the complete collect → embed → cluster → summarize → write pipeline.

    Args:
        config: Run configuration
        source: Message source to collect from; defaults to a
            JetstreamSource built from the configuration

    Returns:
        Tuple of (messages_collected, topic_summaries, output_path)

    Raises:
        Exception: Any stage failure, after it has been logged
    """
    job_start = time.time()
    client = build_openai_client(config)
    if source is None:
        source = JetstreamSource(config.stream_url, config.wanted_collection)

    # ========== STEP 1: COLLECT ==========
    t0 = time.time()
    logger.info(
        "STEP 1/5: Collecting %d '%s' messages", config.target_count, config.language
    )
    try:
        messages = collect_messages(
            source,
            target_count=config.target_count,
            language=config.language,
            floor=config.min_points,
        )
    except Exception:
        logger.exception("Failed to collect messages from the stream")
        raise
    logger.info("✓ Collected %d messages in %.2fs", len(messages), time.time() - t0)

    # ========== STEP 2: EMBED ==========
    t1 = time.time()
    logger.info("STEP 2/5: Embedding %d messages", len(messages))
    vectors = embed_texts(
        [m.text for m in messages],
        client=client,
        model=config.embedding_model,
        dimensions=config.embedding_dimensions,
        batch_size=config.batch_size,
        max_workers=config.max_workers,
    )
    embedded = pair_embeddings(messages, vectors)
    logger.info("✓ Embedded %d messages in %.2fs", len(embedded), time.time() - t1)

    # ========== STEP 3: CLUSTER ==========
    t2 = time.time()
    logger.info(
        "STEP 3/5: Clustering (radius=%.3f, min_points=%d)",
        config.cluster_radius,
        config.min_points,
    )
    clusters = cluster_messages(
        embedded, radius=config.cluster_radius, min_points=config.min_points
    )
    logger.info("✓ Found %d clusters in %.2fs", len(clusters), time.time() - t2)

    # ========== STEP 4: SUMMARIZE ==========
    t3 = time.time()
    logger.info("STEP 4/5: Summarizing %d clusters", len(clusters))
    summaries = summarize_clusters(
        clusters,
        client=client,
        model=config.chat_model,
        max_tokens=config.summary_max_tokens,
    )
    logger.info("✓ Summaries generated in %.2fs", time.time() - t3)

    # ========== STEP 5: WRITE ==========
    logger.info("STEP 5/5: Writing chart data to %s", config.output_path)
    output_path = write_chart_data(summaries, config.output_path, config.chart_title)

    logger.debug(
        "Pipeline completed in %.2fs: %d messages → %d embedded → %d topics",
        time.time() - job_start,
        len(messages),
        len(embedded),
        len(summaries),
    )
    return len(messages), summaries, output_path
