"""Output Validation Script

Validates that a generated chart data file conforms to what the
visualization page expects:
  - The file is a single ``const data = {...};`` assignment
  - The root object has a string ``name`` and a ``children`` list
  - Each child has a non-empty string ``name`` and a positive integer ``value``
  - Optionally, the number of children matches an expected count

Usage:
    python -m src.firehose_topics.scripts.validate_output \\
        --path static/newdata.js \\
        --expected-children 12

Exits with code 0 on success, 1 on validation failure, 2 on argument error.
"""

import argparse
import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

ASSIGNMENT_RE = re.compile(r"^\s*(?:const|let|var)\s+(\w+)\s*=\s*(.*?);?\s*$", re.DOTALL)


def load_chart_data(path: Path) -> Dict[str, Any]:
    """Load the object literal assigned in a chart data file.

    Raises:
        ValueError: If the file is not a single assignment of a JSON object
    """
    with path.open("r", encoding="utf-8") as f:
        content = f.read()

    match = ASSIGNMENT_RE.match(content)
    if not match:
        raise ValueError("File is not a single variable assignment.")

    try:
        data = json.loads(match.group(2))
    except json.JSONDecodeError as e:
        raise ValueError(f"Assigned value is not a valid object literal: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("Assigned value is not an object.")
    return data


def validate_child(child: Any, idx: int) -> Tuple[List[str], List[str]]:
    """Validate a single topic entry.

    Returns:
        (errors, warnings)
    """
    errors: List[str] = []
    warnings: List[str] = []

    if not isinstance(child, dict):
        errors.append(f"[idx={idx}] child should be an object, got {type(child).__name__}")
        return errors, warnings

    name = child.get("name")
    if name is None:
        errors.append(f"[idx={idx}] missing 'name'")
    elif not isinstance(name, str):
        errors.append(f"[idx={idx}] 'name' should be a string, got {type(name).__name__}")
    elif not name.strip():
        errors.append(f"[idx={idx}] 'name' is empty/whitespace")
    elif name.endswith("..."):
        warnings.append(f"[idx={idx}] label was truncated by the model: {name!r}")

    value = child.get("value")
    if value is None:
        errors.append(f"[idx={idx}] missing 'value'")
    # bool is an int subclass
    elif not isinstance(value, int) or isinstance(value, bool):
        errors.append(f"[idx={idx}] 'value' should be an integer, got {type(value).__name__}")
    elif value < 1:
        errors.append(f"[idx={idx}] 'value' should be positive, got {value}")

    return errors, warnings


def validate_chart_data(
    data: Dict[str, Any],
    expected_children: Optional[int] = None,
) -> Tuple[List[str], List[str]]:
    """Validate the root object and all of its children.

    Returns:
        (errors, warnings)
    """
    errors: List[str] = []
    warnings: List[str] = []

    if not isinstance(data.get("name"), str):
        errors.append("root 'name' missing or not a string")

    children = data.get("children")
    if not isinstance(children, list):
        errors.append("root 'children' missing or not a list")
        return errors, warnings

    if not children:
        warnings.append("no topics in output (no clusters found)")

    if expected_children is not None and len(children) != expected_children:
        errors.append(
            f"children length {len(children)} != expected_children {expected_children}"
        )

    for idx, child in enumerate(children):
        child_errors, child_warnings = validate_child(child, idx)
        errors.extend(child_errors)
        warnings.extend(child_warnings)

    return errors, warnings


def main(argv: list[str] | None = None) -> None:
    """Validate a chart data output file.

    Args:
        argv: Command-line arguments. If None, uses sys.argv[1:]

    Raises:
        SystemExit: With code 0 on success, 1 on validation failure
    """
    parser = argparse.ArgumentParser(
        description="Validate chart data output."
    )
    parser.add_argument(
        "--path",
        type=str,
        required=True,
        help="Path to the generated chart data file (e.g. static/newdata.js)",
    )
    parser.add_argument(
        "--expected-children",
        type=int,
        default=None,
        help="Expected number of topics. If not provided, the count is not enforced.",
    )
    args = parser.parse_args(argv)

    path = Path(args.path)

    try:
        data = load_chart_data(path)
    except Exception as e:
        print(f"FAILED TO LOAD FILE: {e}")
        raise SystemExit(1)

    errors, warnings = validate_chart_data(data, args.expected_children)

    if errors:
        print("VALIDATION FAILED:\n")
        for err in errors:
            print(err)
        print(f"\nTotal errors: {len(errors)}")
        if warnings:
            print(f"Total warnings: {len(warnings)}")
        raise SystemExit(1)

    print("VALIDATION PASSED")
    print(f"Total topics: {len(data['children'])}")
    if warnings:
        print("\nWarnings (non-fatal):")
        for w in warnings:
            print(w)
        print(f"\nTotal warnings: {len(warnings)}")

    raise SystemExit(0)


if __name__ == "__main__":
    main()
