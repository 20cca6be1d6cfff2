"""
CLI argument parsing.
"""

import argparse
from pathlib import Path
from typing import Optional


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="cukehtml",
        description="Render feature run results as a single self-contained HTML report.",
    )
    parser.add_argument(
        "results",
        type=Path,
        metavar="RESULTS",
        help="Results tree as JSON",
    )
    parser.add_argument(
        "-o",
        "--output",
        dest="output",
        type=Path,
        default=Path("./report.html"),
        help="Where to write the report (default: ./report.html)",
    )

    # Report options
    parser.add_argument(
        "--title",
        type=str,
        default="Cucumber",
        help="Document title (default: Cucumber)",
    )
    parser.add_argument(
        "--heading",
        type=str,
        default="Cucumber Features",
        help="Page heading above the summary (default: Cucumber Features)",
    )
    parser.add_argument(
        "--project-root",
        type=str,
        metavar="DIR",
        default="",
        help="Prefix for step locations in single-frame backtraces",
    )
    parser.add_argument(
        "--editor-url",
        type=str,
        metavar="TEMPLATE",
        default="txmt://open?url=file://{path}&line={line}",
        help="Link template for backtrace locations; {path} and {line} are filled in",
    )

    return parser.parse_args(argv)
