"""
Depth-first walk of a result tree.

Fires the report callbacks in document order. Background steps are visited
once inside the background section and replayed (``background=True``) at the
top of every scenario, the way the runner executed them.
"""

from typing import Optional, Protocol, Union

from .schema import (
    Background,
    DocString,
    Examples,
    Failure,
    Feature,
    ResultTree,
    Scenario,
    Status,
    Step,
    StepMatch,
    Table,
    TableRow,
)


class ReportSink(Protocol):
    """Callbacks a report renderer exposes to the traversal."""

    def report_start(self, tree: ResultTree) -> None: ...
    def report_end(self, tree: ResultTree) -> None: ...

    def feature_start(self, feature: Feature) -> None: ...
    def feature_end(self, feature: Feature) -> None: ...
    def comment_start(self) -> None: ...
    def comment_line(self, line: str) -> None: ...
    def comment_end(self) -> None: ...
    def tags_start(self) -> None: ...
    def tag_name(self, name: str) -> None: ...
    def tags_end(self) -> None: ...
    def feature_name(self, name: str) -> None: ...

    def background_start(self, background: Background) -> None: ...
    def background_name(self, keyword: str, name: str, file_colon_line: str) -> None: ...
    def background_end(self, background: Background) -> None: ...

    def scenario_start(self, scenario: Scenario) -> None: ...
    def scenario_name(self, keyword: str, name: str, file_colon_line: str) -> None: ...
    def scenario_end(self, scenario: Scenario) -> None: ...

    def examples_start(self, examples: Examples) -> None: ...
    def examples_name(self, keyword: str, name: str) -> None: ...
    def examples_end(self, examples: Examples) -> None: ...
    def outline_table_start(self, table: Table) -> None: ...
    def table_row(self, row: TableRow) -> None: ...
    def outline_table_end(self, table: Table) -> None: ...

    def steps_start(self) -> None: ...
    def steps_end(self) -> None: ...
    def step_start(self, step: Step, background: bool) -> None: ...
    def step_result(
        self,
        keyword: str,
        step_match: StepMatch,
        multiline_arg: Optional[Union[Table, DocString]],
        status: Status,
        exception: Optional[Failure],
        background: bool,
    ) -> None: ...
    def step_end(self, step: Step, background: bool) -> None: ...


def traverse(tree: ResultTree, sink: ReportSink) -> None:
    """Drive ``sink`` through the whole tree."""
    sink.report_start(tree)
    for feature in tree.features:
        _walk_feature(feature, sink)
    sink.report_end(tree)


def _walk_feature(feature: Feature, sink: ReportSink) -> None:
    sink.feature_start(feature)
    _walk_comments(feature.comments, sink)
    _walk_tags(feature.tags, sink)
    sink.feature_name(feature.name)
    background = feature.background
    if background is not None:
        sink.background_start(background)
        sink.background_name(background.keyword, background.name, background.file_colon_line)
        sink.steps_start()
        for step in background.steps:
            _walk_step(step, sink, background=True)
        sink.steps_end()
        sink.background_end(background)
    for scenario in feature.elements:
        _walk_scenario(scenario, background, sink)
    sink.feature_end(feature)


def _walk_scenario(scenario: Scenario, background: Optional[Background], sink: ReportSink) -> None:
    sink.scenario_start(scenario)
    _walk_comments(scenario.comments, sink)
    _walk_tags(scenario.tags, sink)
    sink.scenario_name(scenario.keyword, scenario.name, scenario.file_colon_line)
    sink.steps_start()
    if background is not None:
        for step in background.steps:
            _walk_step(step, sink, background=True)
    for step in scenario.steps:
        _walk_step(step, sink, background=False)
    sink.steps_end()
    for examples in scenario.examples:
        sink.examples_start(examples)
        sink.examples_name(examples.keyword, examples.name)
        sink.outline_table_start(examples.table)
        for row in examples.table.rows:
            sink.table_row(row)
        sink.outline_table_end(examples.table)
        sink.examples_end(examples)
    sink.scenario_end(scenario)


def _walk_step(step: Step, sink: ReportSink, background: bool) -> None:
    sink.step_start(step, background)
    sink.step_result(
        step.keyword,
        step.step_match,
        step.multiline_arg,
        step.status,
        step.exception,
        background,
    )
    sink.step_end(step, background)


def _walk_comments(comments, sink: ReportSink) -> None:
    if not comments:
        return
    sink.comment_start()
    for line in comments:
        sink.comment_line(line)
    sink.comment_end()


def _walk_tags(tags, sink: ReportSink) -> None:
    if not tags:
        return
    sink.tags_start()
    for name in tags:
        sink.tag_name(name)
    sink.tags_end()
