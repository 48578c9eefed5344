"""Pipeline Configuration Module

Holds the single immutable configuration value passed into the pipeline,
loaded from process environment (prefix ``FIREHOSE_``) and an optional
``.env`` file. CLI flags may override individual fields before a run
starts; nothing is reconfigured while a run is in progress.

Environment variables:
  FIREHOSE_TARGET_COUNT: Messages to collect (<= 0 falls back to MIN_POINTS)
  FIREHOSE_LANGUAGE: Language filter (default: en)
  FIREHOSE_BATCH_SIZE: Texts per embedding request (default: 250)
  FIREHOSE_CLUSTER_RADIUS / FIREHOSE_MIN_POINTS: Clustering parameters
  FIREHOSE_OPENAI_BASE_URL / FIREHOSE_OPENAI_PROJECT: Service location
  OPENAI_API_KEY: Read by the OpenAI client itself
"""

import logging
from typing import Optional

from openai import OpenAI
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

JETSTREAM_URL = "wss://jetstream2.us-east.bsky.network/subscribe"
POST_COLLECTION = "app.bsky.feed.post"


class PipelineConfig(BaseSettings):
    """Immutable run configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="FIREHOSE_",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # --- Stream ---
    stream_url: str = JETSTREAM_URL
    wanted_collection: str = POST_COLLECTION
    target_count: int = 10_000
    language: str = "en"

    # --- OpenAI service ---
    openai_base_url: Optional[str] = None
    openai_project: Optional[str] = None
    request_timeout: float = Field(default=60.0, gt=0)

    # --- Embeddings ---
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = Field(default=128, gt=0)
    batch_size: int = Field(default=250, gt=0)
    max_workers: int = Field(default=8, gt=0)

    # --- Clustering ---
    cluster_radius: float = Field(default=0.2, gt=0)
    min_points: int = Field(default=10, ge=1)

    # --- Summaries ---
    chat_model: str = "gpt-4o-mini"
    summary_max_tokens: int = Field(default=25, gt=0)

    # --- Output ---
    output_path: str = "static/newdata.js"
    chart_title: str = "Bluesky topic clusters"

    log_level: str = "INFO"

    @field_validator("language")
    @classmethod
    def strip_language(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("language must not be blank")
        return v

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of {valid_levels}")
        return v.upper()


def build_openai_client(config: PipelineConfig) -> OpenAI:
    """Create the OpenAI client shared by the embedding and summary stages.

    Retries are disabled on the client: a failed request aborts the run.
    ``base_url`` and ``project`` fall back to the client's own environment
    lookup (OPENAI_BASE_URL, OPENAI_PROJECT_ID) when not configured.
    """
    logger.debug(
        "Creating OpenAI client (base_url=%s, project=%s, timeout=%.1fs)",
        config.openai_base_url or "<default>",
        config.openai_project or "<default>",
        config.request_timeout,
    )
    return OpenAI(
        base_url=config.openai_base_url,
        project=config.openai_project,
        timeout=config.request_timeout,
        max_retries=0,
    )
