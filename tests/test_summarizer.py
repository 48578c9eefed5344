import logging
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from src.firehose_topics import summarizer
from src.firehose_topics.models import (
    Cluster,
    EmbeddedMessage,
    FinishReason,
    Message,
    TopicSummary,
)


class FakeChatClient:
    """
    Fake OpenAI client recording chat.completions.create calls and
    returning queued (content, finish_reason) pairs.
    """
    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

        class _Completions:
            def __init__(self, outer):
                self._outer = outer

            def create(self, **kwargs):
                self._outer.calls.append(kwargs)
                if not self._outer.replies:
                    raise RuntimeError("No more fake replies configured")
                content, finish_reason = self._outer.replies.pop(0)
                choice = SimpleNamespace(
                    message=SimpleNamespace(content=content),
                    finish_reason=finish_reason,
                )
                return SimpleNamespace(choices=[choice])

        self.chat = SimpleNamespace(completions=_Completions(self))


def make_cluster(texts):
    points = [
        EmbeddedMessage(
            message=Message(
                text=text,
                languages=frozenset({"en"}),
                created_at=datetime(2024, 11, 20, tzinfo=timezone.utc),
                content_id=f"cid-{i}",
                author_id="did:plc:author",
            ),
            vector=[0.0, 0.0],
        )
        for i, text in enumerate(texts)
    ]
    return Cluster(points=points)


def test_summarize_texts_sends_joined_prompt():
    client = FakeChatClient([("Cats and dogs", "stop")])

    label = summarizer.summarize_texts(
        ["first post", "second post", "third post"],
        client=client,
        model="gpt-4o-mini",
        max_tokens=25,
    )

    assert label == "Cats and dogs"
    assert len(client.calls) == 1
    call = client.calls[0]
    assert call["model"] == "gpt-4o-mini"
    assert call["max_tokens"] == 25
    system, user = call["messages"]
    assert system["role"] == "system"
    assert "10 words or less" in system["content"]
    assert "social media posts" in system["content"]
    assert user == {"role": "user", "content": "first post\nsecond post\nthird post"}


def test_summarize_texts_length_limited_gets_ellipsis():
    client = FakeChatClient([("A very long topic that got cut  \n", "length")])

    label = summarizer.summarize_texts(["x"], client=client)

    assert label == "A very long topic that got cut..."


def test_summarize_texts_normal_finish_is_trimmed_text():
    client = FakeChatClient([("  Election night results\n", "stop")])

    label = summarizer.summarize_texts(["x"], client=client)

    assert label == "Election night results"
    assert not label.endswith("...")


def test_summarize_texts_unknown_finish_reason_raises():
    client = FakeChatClient([("whatever", "not-a-reason")])

    with pytest.raises(ValueError):
        summarizer.summarize_texts(["x"], client=client)


def test_summarize_texts_none_content_is_empty_label():
    client = FakeChatClient([(None, "content_filter")])

    assert summarizer.summarize_texts(["x"], client=client) == ""


@pytest.mark.parametrize(
    "reason,expected",
    [
        (FinishReason.LENGTH, "topic..."),
        (FinishReason.STOP, "topic"),
        (FinishReason.CONTENT_FILTER, "topic"),
    ],
)
def test_apply_finish_reason(reason, expected):
    assert summarizer.apply_finish_reason(" topic ", reason) == expected


def test_summarize_clusters_keeps_cluster_order_and_sizes():
    client = FakeChatClient([("Topic A", "stop"), ("Topic B", "length")])
    clusters = [make_cluster(["a1", "a2", "a3"]), make_cluster(["b1", "b2"])]

    summaries = summarizer.summarize_clusters(clusters, client=client)

    assert summaries == [
        TopicSummary(label="Topic A", size=3),
        TopicSummary(label="Topic B...", size=2),
    ]
    assert client.calls[0]["messages"][1]["content"] == "a1\na2\na3"
    assert client.calls[1]["messages"][1]["content"] == "b1\nb2"


def test_summarize_clusters_failure_aborts():
    client = FakeChatClient([("Topic A", "stop")])  # second call has no reply
    clusters = [make_cluster(["a1"]), make_cluster(["b1"])]

    with pytest.raises(RuntimeError, match="No more fake replies"):
        summarizer.summarize_clusters(clusters, client=client)


def test_summarize_clusters_warns_on_empty_label(caplog):
    client = FakeChatClient([("Topic A", "stop"), (None, "content_filter")])
    clusters = [make_cluster(["a1"]), make_cluster(["b1", "b2"])]

    with caplog.at_level(logging.WARNING, logger=summarizer.__name__):
        summaries = summarizer.summarize_clusters(clusters, client=client)

    assert summaries[1] == TopicSummary(label="", size=2)
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert "Cluster #1 got an empty label" in warnings[0].getMessage()
