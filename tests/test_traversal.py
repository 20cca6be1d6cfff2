"""Tests for the traversal order and the result tree helpers."""

from cukehtml.schema import (
    Background,
    Cell,
    Examples,
    Feature,
    ResultTree,
    Scenario,
    Step,
    StepArgument,
    StepMatch,
    Table,
    TableRow,
)
from cukehtml.traversal import traverse


class _Recorder:
    """Sink that records every callback name (with the background flag for steps)."""

    def __init__(self):
        self.events = []

    def __getattr__(self, name):
        def record(*args):
            if name in ("step_start", "step_result", "step_end"):
                self.events.append((name, args[-1]))
            else:
                self.events.append(name)
        return record


def _step(name: str) -> Step:
    return Step(keyword="Given", step_match=StepMatch(name=name))


# ---------------------------------------------------------------------------
# traverse
# ---------------------------------------------------------------------------

def test_document_order_with_background_and_outline():
    feature = Feature(
        comments=["# c"],
        tags=["t"],
        name="f",
        background=Background(steps=[_step("bg")]),
        elements=[
            Scenario(name="s", steps=[_step("own")], outline=True, examples=[
                Examples(table=Table(rows=[TableRow(cells=[Cell(value="h")]), TableRow(cells=[Cell(value="v")])])),
            ]),
        ],
    )
    sink = _Recorder()
    traverse(ResultTree(features=[feature]), sink)
    assert sink.events == [
        "report_start",
        "feature_start",
        "comment_start", "comment_line", "comment_end",
        "tags_start", "tag_name", "tags_end",
        "feature_name",
        "background_start", "background_name", "steps_start",
        ("step_start", True), ("step_result", True), ("step_end", True),
        "steps_end", "background_end",
        "scenario_start", "scenario_name", "steps_start",
        ("step_start", True), ("step_result", True), ("step_end", True),
        ("step_start", False), ("step_result", False), ("step_end", False),
        "steps_end",
        "examples_start", "examples_name", "outline_table_start",
        "table_row", "table_row",
        "outline_table_end", "examples_end",
        "scenario_end",
        "feature_end",
        "report_end",
    ]


def test_no_comment_or_tag_events_when_absent():
    sink = _Recorder()
    traverse(ResultTree(features=[Feature(name="f")]), sink)
    assert sink.events == ["report_start", "feature_start", "feature_name", "feature_end", "report_end"]


# ---------------------------------------------------------------------------
# StepMatch / Table helpers
# ---------------------------------------------------------------------------

def test_format_args_wraps_each_argument():
    match = StepMatch(
        name="I have entered 50 and 70",
        args=[StepArgument(value="70", offset=22), StepArgument(value="50", offset=15)],
    )
    assert match.format_args(lambda v: f"[{v}]") == "I have entered [50] and [70]"


def test_signature_distinguishes_argument_values():
    a = StepMatch(name="I have 5", args=[StepArgument(value="5", offset=7)])
    b = StepMatch(name="I have 5", args=[StepArgument(value="5", offset=7)])
    c = StepMatch(name="I have 5", file_colon_line="steps.py:3")
    assert a.signature() == b.signature()
    assert a.signature() != c.signature()


def test_empty_table_dimensions():
    assert Table().row_count == 0
    assert Table().column_count == 0
