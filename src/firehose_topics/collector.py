"""Stream Collection Module

Collects a bounded sample of posts from the Bluesky Jetstream firehose.

The subscription is pulled one event at a time: the websocket receive
buffer is capped at a single frame and the next frame is only read after
the previous one has been decoded and filtered, so nothing accumulates
beyond the accepted messages themselves. Once the target number of
messages is reached the subscription is closed from our side.

Decode errors (malformed JSON, missing fields) and transport errors are not
handled here; they propagate and abort the run.
"""

import logging
import time
from typing import Iterator, List, Optional, Union
from urllib.parse import urlencode

from websockets.sync.client import ClientConnection, connect

from .models import Message, StreamEvent

logger = logging.getLogger(__name__)

PROGRESS_EVERY = 1000
# Jetstream frames are small JSON documents; anything bigger is not a post.
MAX_FRAME_BYTES = 2**20


def decode_message(raw: Union[str, bytes]) -> Message:
    """Decode one raw stream event into a Message.

    Raises:
        pydantic.ValidationError: If the event is not valid JSON or lacks
            any of the expected commit/record fields.
    """
    return Message.from_event(StreamEvent.model_validate_json(raw))


def is_accepted(message: Message, language: str) -> bool:
    """Keep only messages tagged with ``language`` that have non-blank text.

    Language tags compare case-insensitively (``pt-BR`` matches ``pt-br``).
    """
    wanted = language.casefold()
    tagged = any(lang.casefold() == wanted for lang in message.languages)
    return tagged and bool(message.text.strip())


class JetstreamSource:
    """Context-managed, iterable subscription to a Jetstream endpoint.

    Iterating yields raw text frames, one ``recv()`` per item. Iteration
    ends when the server closes the connection cleanly; an abnormal close
    raises ``websockets.exceptions.ConnectionClosedError``.
    """

    def __init__(self, url: str, wanted_collection: str, open_timeout: float = 10.0):
        self.url = f"{url}?{urlencode({'wantedCollections': wanted_collection})}"
        self.open_timeout = open_timeout
        self._connection: Optional[ClientConnection] = None

    def __enter__(self) -> "JetstreamSource":
        logger.info("Subscribing to %s", self.url)
        self._connection = connect(
            self.url,
            open_timeout=self.open_timeout,
            max_size=MAX_FRAME_BYTES,
            max_queue=1,
        )
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[Union[str, bytes]]:
        if self._connection is None:
            raise RuntimeError("JetstreamSource must be entered before iterating")
        return iter(self._connection)

    def close(self) -> None:
        if self._connection is not None:
            logger.debug("Closing subscription to %s", self.url)
            self._connection.close()
            self._connection = None


def collect_messages(
    source,
    target_count: int,
    language: str,
    floor: int,
) -> List[Message]:
    """Collect accepted messages from ``source`` until ``target_count`` is reached.

    Args:
        source: Context manager yielding raw events when iterated, with a
            ``close()`` method (e.g. JetstreamSource)
        target_count: Number of messages to collect; values <= 0 are
            replaced by ``floor``
        language: Language code a message must be tagged with
        floor: Minimum number of messages to collect

    Returns:
        Accepted messages in arrival order. Fewer than the target only if
        the source closed before enough qualifying events arrived.

    Raises:
        pydantic.ValidationError: On a malformed event
        Exception: Transport errors from the source
    """
    limit = target_count if target_count > 0 else floor
    if limit != target_count:
        logger.warning(
            "target_count=%d is not positive; collecting %d messages instead",
            target_count,
            limit,
        )

    messages: List[Message] = []
    received = 0
    start = time.time()

    with source:
        for raw in source:
            if received % PROGRESS_EVERY == 0:
                logger.info(
                    "Received %d events (%d accepted)", received, len(messages)
                )
            received += 1

            message = decode_message(raw)
            if not is_accepted(message, language):
                continue

            messages.append(message)
            if len(messages) >= limit:
                source.close()
                break

    if len(messages) < limit:
        logger.warning(
            "Stream closed after %d/%d accepted messages", len(messages), limit
        )

    logger.info(
        "✓ Consumed %d messages (%d events received) in %.2fs",
        len(messages),
        received,
        time.time() - start,
    )
    return messages
