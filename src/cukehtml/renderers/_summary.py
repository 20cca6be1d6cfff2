"""Scenario and step tallies for the report's totals line."""

from collections import Counter
from typing import Iterable, List

from ..schema import SUMMARY_ORDER, ResultTree, Scenario, Status, Step, TableRow


def _first_not_passed(statuses: Iterable[Status]) -> Status:
    for status in statuses:
        if status != Status.PASSED:
            return status
    return Status.PASSED


def _row_status(row: TableRow) -> Status:
    if row.exception is not None:
        return Status.FAILED
    return _first_not_passed(c.status for c in row.cells if c.status is not None)


def _scenario_statuses(scenario: Scenario, background_steps: List[Step]) -> List[Status]:
    """One status per executed scenario: a plain scenario, or each outline data row."""
    if scenario.outline:
        return [_row_status(row) for ex in scenario.examples for row in ex.table.rows[1:]]
    return [_first_not_passed(s.status for s in background_steps + scenario.steps)]


def tally(tree: ResultTree):
    """Return (scenario Counter, step Counter) keyed by Status."""
    scenarios: Counter = Counter()
    steps: Counter = Counter()
    for feature in tree.features:
        background_steps = feature.background.steps if feature.background else []
        for scenario in feature.elements:
            scenarios.update(_scenario_statuses(scenario, background_steps))
            if not scenario.outline:
                steps.update(s.status for s in background_steps)
            steps.update(s.status for s in scenario.steps)
    return scenarios, steps


def dump_count(count: int, what: str) -> str:
    return f"{count} {what}{'' if count == 1 else 's'}"


def status_counts(counts: Counter) -> str:
    parts = [f"{counts[s]} {s.value}" for s in SUMMARY_ORDER if counts[s]]
    return f" ({', '.join(parts)})" if parts else ""


def stat_string(tree: ResultTree) -> str:
    """e.g. '1 scenario (1 failed)<br />2 steps (1 failed, 1 passed)'."""
    scenarios, steps = tally(tree)
    return (
        dump_count(sum(scenarios.values()), "scenario")
        + status_counts(scenarios)
        + "<br />"
        + dump_count(sum(steps.values()), "step")
        + status_counts(steps)
    )
