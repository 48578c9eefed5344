"""Pipeline CLI Entry Point

Provides the command-line interface for the firehose topic clustering
pipeline. Handles argument parsing, logging configuration, and turns the
environment-based configuration plus CLI overrides into a single run.

Usage:
    python -m src.run_pipeline --target-count 5000 --output static/newdata.js
"""

import argparse
import logging
import time
from pathlib import Path

from pydantic import ValidationError

from src.firehose_topics.config import PipelineConfig
from src.firehose_topics.pipeline import run_pipeline


def configure_logging(level: str = "INFO") -> None:
    """Configure logging with both console and file output.

    Sets up:
      - Root logger at DEBUG level
      - Console handler at ``level`` for user-facing messages
      - File handler at DEBUG level for detailed troubleshooting
      - Reduced verbosity for httpx, openai and websockets loggers
    """
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)
    log_file = log_dir / "pipeline.log"

    # Root logger
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG)

    for noisy in ("httpx", "openai", "websockets"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    logger.handlers.clear()
    logger.addHandler(console_handler)
    logger.addHandler(file_handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Cluster a live sample of Bluesky posts into topics"
    )
    parser.add_argument(
        "--target-count",
        type=int,
        default=None,
        help="Number of messages to collect (<= 0 uses the minimum cluster size).",
    )
    parser.add_argument(
        "--language",
        default=None,
        help="Only keep posts tagged with this language code (e.g. en).",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Number of texts per embedding request.",
    )
    parser.add_argument(
        "--max-workers",
        type=int,
        default=None,
        help="Maximum number of concurrent embedding requests.",
    )
    parser.add_argument(
        "--radius",
        type=float,
        default=None,
        help="Clustering neighborhood radius.",
    )
    parser.add_argument(
        "--min-points",
        type=int,
        default=None,
        help="Minimum points (including itself) around a core point.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Path of the chart data file to write.",
    )
    return parser


def load_config(args: argparse.Namespace) -> PipelineConfig:
    """Load configuration from the environment and apply CLI overrides."""
    overrides = {
        "target_count": args.target_count,
        "language": args.language,
        "batch_size": args.batch_size,
        "max_workers": args.max_workers,
        "cluster_radius": args.radius,
        "min_points": args.min_points,
        "output_path": str(args.output) if args.output is not None else None,
    }
    # Init kwargs take precedence over environment values and are
    # validated with the same constraints.
    return PipelineConfig(**{k: v for k, v in overrides.items() if v is not None})


def main(argv=None) -> int:
    """
    CLI entrypoint for the firehose topic clustering pipeline.

    Returns a Unix-style exit code (0 on success, 1 on failure).
    """
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args)
    except ValidationError as e:
        configure_logging()
        logging.getLogger(__name__).error("Invalid configuration: %s", e)
        return 1

    configure_logging(config.log_level)
    logger = logging.getLogger(__name__)

    logger.info("=== Starting firehose topic clustering ===")
    logger.info("Target count: %d", config.target_count)
    logger.info("Language: %s", config.language)
    logger.info("Batch size: %d", config.batch_size)
    logger.info("Radius / min points: %.3f / %d", config.cluster_radius, config.min_points)
    logger.info("Output: %s", config.output_path)

    try:
        start_time = time.time()
        collected, summaries, output_path = run_pipeline(config)
        elapsed_time = time.time() - start_time

        logger.info("=" * 70)
        logger.info("Pipeline completed successfully in %.2fs", elapsed_time)
        logger.info("  Messages:  %d", collected)
        logger.info("  Topics:    %d", len(summaries))
        for summary in summaries:
            logger.info("    %5d  %s", summary.size, summary.label)
        logger.info("  Output:    %s", output_path)
        logger.info("=" * 70)

    except Exception as e:
        logger.exception(f"Pipeline failed with an unhandled exception: {e}")
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
