# tests/test_serializer.py

"""
Tests for rendering and writing the chart data file.
"""

from pathlib import Path

import pytest

from src.firehose_topics.models import TopicSummary
from src.firehose_topics.scripts.validate_output import load_chart_data
from src.firehose_topics.serializer import render_chart_data, write_chart_data


def test_render_chart_data_shape():
    output = render_chart_data(
        [TopicSummary(label="Cats", size=12), TopicSummary(label="Dogs", size=3)],
        title="Bluesky topic clusters",
    )

    assert output.startswith("const data = {")
    assert output.rstrip().endswith("};")
    assert '"name": "Bluesky topic clusters"' in output
    assert '{\n      "name": "Cats",\n      "value": 12\n    }' in output


def test_write_chart_data_preserves_order_and_count(tmp_path: Path):
    summaries = [TopicSummary(label=f"Topic {i}", size=i + 1) for i in range(5)]
    destination = tmp_path / "static" / "newdata.js"

    written = write_chart_data(summaries, destination, title="Title")

    assert written == destination
    data = load_chart_data(destination)
    assert data["name"] == "Title"
    assert len(data["children"]) == 5
    assert [c["name"] for c in data["children"]] == [s.label for s in summaries]
    assert [c["value"] for c in data["children"]] == [1, 2, 3, 4, 5]


def test_quotes_and_newlines_are_escaped(tmp_path: Path):
    label = 'The "big" game\nand more'
    destination = tmp_path / "newdata.js"

    write_chart_data([TopicSummary(label=label, size=10)], destination)

    text = destination.read_text(encoding="utf-8")
    assert '"The \\"big\\" game\\nand more"' in text
    # Round-trips back to the original label
    assert load_chart_data(destination)["children"][0]["name"] == label


def test_non_ascii_labels_kept_verbatim(tmp_path: Path):
    destination = tmp_path / "newdata.js"

    write_chart_data([TopicSummary(label="Café ☕ culture", size=2)], destination)

    assert "Café ☕ culture" in destination.read_text(encoding="utf-8")


def test_empty_summaries_write_empty_children(tmp_path: Path):
    destination = tmp_path / "newdata.js"

    write_chart_data([], destination)

    assert load_chart_data(destination)["children"] == []


def test_existing_file_is_replaced(tmp_path: Path):
    destination = tmp_path / "newdata.js"
    destination.write_text("stale content that is much longer than needed" * 100)

    write_chart_data([TopicSummary(label="Fresh", size=1)], destination)

    text = destination.read_text(encoding="utf-8")
    assert "stale" not in text
    assert load_chart_data(destination)["children"] == [{"name": "Fresh", "value": 1}]


def test_unwritable_destination_raises(tmp_path: Path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("file, not a directory")

    with pytest.raises(OSError):
        write_chart_data([TopicSummary(label="x", size=1)], blocker / "newdata.js")
