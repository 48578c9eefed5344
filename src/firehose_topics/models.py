"""Data Models Module

Defines Pydantic models for the data flowing through the pipeline: the
stream event as it arrives on the wire, the flattened Message the rest of
the pipeline works with, embedded messages, clusters and topic summaries.
"""

from datetime import datetime
from enum import Enum
from typing import FrozenSet, List

from pydantic import BaseModel, ConfigDict, Field


class PostRecord(BaseModel):
    """The post payload carried inside a commit."""
    text: str
    langs: List[str]
    createdAt: datetime


class Commit(BaseModel):
    record: PostRecord
    cid: str


class StreamEvent(BaseModel):
    """One decoded event from the stream.

    Only the fields the pipeline needs are declared; everything else the
    stream sends (kind, time_us, operation, rkey...) is ignored.
    """
    commit: Commit
    did: str


class Message(BaseModel):
    """Immutable, flattened view of a collected post."""
    model_config = ConfigDict(frozen=True)

    text: str
    languages: FrozenSet[str]
    created_at: datetime
    content_id: str
    author_id: str

    @classmethod
    def from_event(cls, event: StreamEvent) -> "Message":
        record = event.commit.record
        return cls(
            text=record.text,
            languages=frozenset(record.langs),
            created_at=record.createdAt,
            content_id=event.commit.cid,
            author_id=event.did,
        )


class EmbeddedMessage(BaseModel):
    """A message paired with its embedding vector; the unit of clustering."""
    model_config = ConfigDict(frozen=True)

    message: Message
    vector: List[float]


class Cluster(BaseModel):
    """Non-empty group of density-connected embedded messages."""
    points: List[EmbeddedMessage] = Field(min_length=1)

    def __len__(self) -> int:
        return len(self.points)

    def texts(self) -> List[str]:
        return [p.message.text for p in self.points]


class TopicSummary(BaseModel):
    """Chart entry derived from one cluster."""
    label: str
    size: int = Field(ge=1)


class FinishReason(str, Enum):
    """Why the summarization model stopped generating."""
    STOP = "stop"
    LENGTH = "length"
    CONTENT_FILTER = "content_filter"
    TOOL_CALLS = "tool_calls"
    FUNCTION_CALL = "function_call"
