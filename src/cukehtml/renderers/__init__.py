"""
Renderers consume a result tree and a Jinja2 environment, writing the report.
"""

from pathlib import Path
from typing import Optional

from ..schema import ReportOptions, ResultTree

from .html_report import make_env
from .html_report import render as render_html_report


def run_all(tree: ResultTree, output_path: Path, options: Optional[ReportOptions] = None) -> None:
    """Render the HTML report to output_path."""
    render_html_report(tree, make_env(), Path(output_path), options)
