"""
Pipeline: load a results file, intern shared failures, then render the report.
"""

import json
import sys
from pathlib import Path
from typing import Dict, Iterator, Optional

from ._util import debug
from .schema import SCHEMA_VERSION, Failure, ReportOptions, ResultTree, Table, TableRow


def load_results(path: Path) -> ResultTree:
    """Load and validate a results tree from JSON."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    file_version = data.get("schema_version", 1)
    if file_version > SCHEMA_VERSION:
        print(
            f"WARNING: results were written for a newer cukehtml (schema v{file_version}, "
            f"this tool supports v{SCHEMA_VERSION}). Loading as v{SCHEMA_VERSION}.",
            file=sys.stderr,
        )
        data["schema_version"] = SCHEMA_VERSION
    tree = ResultTree.model_validate(data)
    return intern_failures(tree)


def _rows(table: Optional[object]) -> Iterator[TableRow]:
    if isinstance(table, Table):
        yield from table.rows


def intern_failures(tree: ResultTree) -> ResultTree:
    """
    Make failures that share an ``id`` the same object, in place.

    The report deduplicates failures by identity, so a background failure
    written once per scenario in a results file must load as one object.
    """
    by_id: Dict[str, Failure] = {}

    def intern(failure: Optional[Failure]) -> Optional[Failure]:
        if failure is None or not failure.id:
            return failure
        return by_id.setdefault(failure.id, failure)

    for feature in tree.features:
        steps = list(feature.background.steps) if feature.background else []
        for scenario in feature.elements:
            steps.extend(scenario.steps)
            for examples in scenario.examples:
                for row in examples.table.rows:
                    row.exception = intern(row.exception)
        for step in steps:
            step.exception = intern(step.exception)
            for row in _rows(step.multiline_arg):
                row.exception = intern(row.exception)
    debug("pipeline", f"{len(by_id)} distinct failure ids")
    return tree


def run_pipeline(
    *,
    results_path: Path,
    output_path: Path,
    options: Optional[ReportOptions] = None,
) -> ResultTree:
    """Load results and write the HTML report. Returns the loaded tree."""
    from .renderers import run_all

    tree = load_results(results_path)
    run_all(tree, output_path, options)
    debug("pipeline", f"wrote {output_path}")
    return tree
