"""Chart Data Output Module

Renders topic summaries as a JavaScript assignment of a D3 hierarchy
object, written to a file the visualization page loads:

    const data = {
      "name": "Bluesky topic clusters",
      "children": [
        {"name": "<label>", "value": <size>},
        ...
      ]
    };

String escaping (quotes, backslashes, newlines) is delegated to the JSON
encoder, so the object literal is valid JavaScript and valid JSON.
"""

import json
import logging
from pathlib import Path
from typing import Sequence

from .models import TopicSummary

logger = logging.getLogger(__name__)

DATA_VARIABLE = "data"
CHART_TITLE = "Bluesky topic clusters"


def render_chart_data(
    summaries: Sequence[TopicSummary],
    title: str = CHART_TITLE,
) -> str:
    """Render summaries, in the given order, as the chart data script."""
    tree = {
        "name": title,
        "children": [{"name": s.label, "value": s.size} for s in summaries],
    }
    body = json.dumps(tree, ensure_ascii=False, indent=2)
    return f"const {DATA_VARIABLE} = {body};\n"


def write_chart_data(
    summaries: Sequence[TopicSummary],
    destination: Path | str,
    title: str = CHART_TITLE,
) -> Path:
    """Write the chart data script to ``destination``, replacing any existing file.

    Args:
        summaries: Topic summaries in display order
        destination: Output file path; parent directories are created
        title: Name of the root node

    Returns:
        The path written

    Raises:
        OSError: If the destination cannot be created or written
    """
    destination = Path(destination)
    output = render_chart_data(summaries, title)
    logger.debug("Chart data:\n%s", output)

    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        with destination.open("w", encoding="utf-8") as f:
            f.write(output)
    except OSError:
        logger.exception("Failed to write chart data to %s", destination)
        raise

    logger.info("✓ Wrote %d topics to %s", len(summaries), destination)
    return destination
