"""Cluster Summarization Module

Asks a chat model for a short topic label describing all messages of a
cluster. The response length is capped by ``max_tokens``; when the model
stops because of that cap the label gets an ellipsis so the cut is
visible on the chart.
"""

import logging
import time
from typing import List, Sequence

from .models import Cluster, FinishReason, TopicSummary

logger = logging.getLogger(__name__)

CHAT_MODEL = "gpt-4o-mini"
ELLIPSIS = "..."

SUMMARY_INSTRUCTIONS = """\
Summarize the following list of social media messages in one simple description.
Don't give a full sentence saying the social messages are about a topic,
just give the topic directly in 10 words or less,
without mentioning the messages are social media posts or reactions.
"""


def apply_finish_reason(text: str, reason: FinishReason) -> str:
    """Turn raw model output into a label, marking length-truncated output."""
    if reason is FinishReason.LENGTH:
        return text.strip() + ELLIPSIS
    return text.strip()


def summarize_texts(
    texts: Sequence[str],
    *,
    client,
    model: str = CHAT_MODEL,
    max_tokens: int = 25,
) -> str:
    """
    Summarize a group of messages into a short topic label.

    Args:
        texts: Message texts, joined with newlines in the given order
        client: OpenAI client (anything exposing ``chat.completions.create``)
        model: Chat model name
        max_tokens: Cap on generated tokens

    Returns:
        Topic label; ends with an ellipsis if the model hit ``max_tokens``

    Raises:
        ValueError: If the response carries an unknown finish reason
        Exception: On OpenAI API errors (no retry)
    """
    response = client.chat.completions.create(
        model=model,
        messages=[
            {"role": "system", "content": SUMMARY_INSTRUCTIONS},
            {"role": "user", "content": "\n".join(texts)},
        ],
        max_tokens=max_tokens,
    )
    choice = response.choices[0]
    return apply_finish_reason(
        choice.message.content or "", FinishReason(choice.finish_reason)
    )


def summarize_clusters(
    clusters: Sequence[Cluster],
    *,
    client,
    model: str = CHAT_MODEL,
    max_tokens: int = 25,
) -> List[TopicSummary]:
    """Summarize every cluster in order; the first failure aborts."""
    summaries: List[TopicSummary] = []

    for idx, cluster in enumerate(clusters):
        logger.info("=== Cluster #%d === (%d points) ===", idx, len(cluster))
        t0 = time.time()
        try:
            label = summarize_texts(
                cluster.texts(), client=client, model=model, max_tokens=max_tokens
            )
        except Exception:
            logger.exception("Failed to summarize cluster #%d", idx)
            raise

        logger.info("Label: %s (%.2fs)", label, time.time() - t0)
        if not label:
            logger.warning(
                "Cluster #%d got an empty label; the chart entry will fail validation",
                idx,
            )
        logger.debug(
            "Messages:\n%s",
            "\n".join(
                f"{p.message.content_id} --> {p.message.text}" for p in cluster.points
            ),
        )
        summaries.append(TopicSummary(label=label, size=len(cluster)))

    return summaries
