"""HTML report renderer.

Receives traversal callbacks in document order and streams the report as it
goes: the document shell comes from templates/report_head.html.j2 and
report_tail.html.j2, everything in between is written through a
MarkupBuilder. Inline <script> fragments (progress bar, red/yellow
colouring) are emitted at the point they apply so a report can be watched
while it is still being written.
"""

import os
import re
from pathlib import Path
from typing import List, Optional, TextIO, Union

from jinja2 import Environment, FileSystemLoader
from markupsafe import Markup, escape

from .._util import debug, format_duration
from ..counting import count_units
from ..markup import MarkupBuilder
from ..schema import (
    Background,
    DocString,
    Examples,
    Failure,
    Feature,
    ReportOptions,
    ResultTree,
    Scenario,
    Status,
    Step,
    StepMatch,
    Table,
    TableRow,
)
from ..snippets import SnippetExtractor
from ..traversal import traverse
from ._summary import stat_string

_TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

HEADER_ID = "cucumber-header"

# file.ext:line anywhere in a backtrace line
_BACKTRACE_LOCATION = re.compile(r"([^\s:\"'<>()]+\.[A-Za-z0-9]+):(\d+)")

_ESCAPED_SPAN_OPEN = re.compile(r"&lt;span class=&#34;(.*?)&#34;&gt;")
_ESCAPED_SPAN_CLOSE = "&lt;/span&gt;"

_SCRIPT = '<script type="text/javascript">{}</script>'


# ---------------------------------------------------------------------------
# Render state
# ---------------------------------------------------------------------------

class RenderState:
    """Mutable state threaded through the callbacks of one report run."""

    def __init__(self, total_units: int = 0):
        self.total_units = total_units
        self.step_index = 0
        self.scenario_index = 0
        self.header_marked_failed = False
        self.scenario_marked_failed = False
        self.seen_exceptions: List[Failure] = []
        self.within_background = False
        self.listing_background_section = False
        self.seen_step_texts: List[tuple] = []
        self.outline_row_index: Optional[int] = None

        self.step_id = ""
        self.steps_visited = 0
        self.row_id = ""
        self.rows_visited = 0
        self.col_index = 0
        self.skip_step = False
        self.tag_spacer: Optional[str] = None
        self.current_step_match: Optional[StepMatch] = None

    def reset_for_feature(self) -> None:
        self.seen_exceptions = []

    def reset_for_scenario(self) -> None:
        self.scenario_marked_failed = False
        self.seen_step_texts = []

    def exception_seen(self, exception: Failure) -> bool:
        return any(e is exception for e in self.seen_exceptions)

    def percent_done(self) -> float:
        if self.total_units == 0:
            return 100.0
        return int(self.step_index / self.total_units * 1000) / 10.0


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------

class HtmlReportRenderer:
    """Report callbacks; see traversal.ReportSink for the order they fire in."""

    def __init__(
        self,
        out: TextIO,
        env: Optional[Environment] = None,
        options: Optional[ReportOptions] = None,
        snippets: Optional[SnippetExtractor] = None,
    ):
        self.builder = MarkupBuilder(out)
        self.env = env if env is not None else make_env()
        self.options = options if options is not None else ReportOptions()
        self.snippets = snippets if snippets is not None else SnippetExtractor()
        self.state = RenderState()
        self._started = False

    # --- document ---

    def report_start(self, tree: ResultTree) -> None:
        if self._started:
            raise RuntimeError("renderer already used for a report; create a new one per run")
        self._started = True
        self.state.total_units = count_units(tree)
        debug("html_report", f"{self.state.total_units} progress units")
        head = self.env.get_template("report_head.html.j2").render(
            title=self.options.title,
            heading=self.options.heading,
            step_count=self.state.total_units,
        )
        self.builder.raw(head)

    def report_end(self, tree: ResultTree) -> None:
        tail = self.env.get_template("report_tail.html.j2").render(
            duration=format_duration(tree.duration),
            totals=Markup(stat_string(tree)),
        )
        self.builder.raw(tail)

    def announce(self, announcement: str) -> None:
        self.builder.leaf("pre", announcement, {"class": "announcement"})

    # --- feature ---

    def feature_start(self, feature: Feature) -> None:
        self.state.reset_for_feature()
        self.builder.open_element("div", {"class": "feature"})

    def feature_end(self, feature: Feature) -> None:
        self.builder.close_element()

    def comment_start(self) -> None:
        self.builder.open_element("pre", {"class": "comment"})

    def comment_line(self, line: str) -> None:
        self.builder.text(line)
        self.builder.empty("br")

    def comment_end(self) -> None:
        self.builder.close_element()

    def tags_start(self) -> None:
        self.state.tag_spacer = None

    def tag_name(self, name: str) -> None:
        if self.state.tag_spacer:
            self.builder.text(self.state.tag_spacer)
        self.state.tag_spacer = " "
        self.builder.leaf("span", f"@{name}", {"class": "tag"})

    def tags_end(self) -> None:
        self.state.tag_spacer = None

    def feature_name(self, name: str) -> None:
        lines = name.splitlines()
        if not lines:
            return
        with self.builder.element("h2"):
            self.builder.leaf("span", lines[0], {"class": "val"})
        narrative = lines[1:]
        if not narrative:
            return
        with self.builder.element("p", {"class": "narrative"}):
            for i, line in enumerate(narrative):
                if i:
                    self.builder.empty("br")
                self.builder.text(line.strip())

    # --- background and scenarios ---

    def background_start(self, background: Background) -> None:
        self.builder.open_element("div", {"class": "background"})
        self.state.within_background = True

    def background_name(self, keyword: str, name: str, file_colon_line: str) -> None:
        self.state.listing_background_section = True
        self._heading("h3", keyword, name)

    def background_end(self, background: Background) -> None:
        self.state.within_background = False
        self.builder.close_element()

    def scenario_start(self, scenario: Scenario) -> None:
        self.state.scenario_index += 1
        self.state.reset_for_scenario()
        css_class = "scenario outline" if scenario.outline else "scenario"
        self.builder.open_element("div", {"class": css_class})

    def scenario_name(self, keyword: str, name: str, file_colon_line: str) -> None:
        self.state.listing_background_section = False
        self._heading("h3", keyword, name, {"id": self._scenario_id()})

    def scenario_end(self, scenario: Scenario) -> None:
        self.builder.close_element()

    def examples_start(self, examples: Examples) -> None:
        self.builder.open_element("div", {"class": "examples"})

    def examples_name(self, keyword: str, name: str) -> None:
        self._heading("h4", keyword, name)

    def examples_end(self, examples: Examples) -> None:
        self.builder.close_element()

    def outline_table_start(self, table: Table) -> None:
        self.state.outline_row_index = 0
        self.builder.open_element("table")

    def outline_table_end(self, table: Table) -> None:
        self.builder.close_element()
        self.state.outline_row_index = None

    # --- steps ---

    def steps_start(self) -> None:
        self.builder.open_element("ol")

    def steps_end(self) -> None:
        self.builder.close_element()

    def step_start(self, step: Step, background: bool) -> None:
        # Background steps replayed in a scenario were counted once, in the background.
        if not (background and not self.state.within_background):
            self.state.step_index += 1
        self.state.steps_visited += 1
        self.state.step_id = f"step_{self.state.steps_visited}"

    def step_end(self, step: Step, background: bool) -> None:
        self.move_progress()

    def step_result(
        self,
        keyword: str,
        step_match: StepMatch,
        multiline_arg: Optional[Union[Table, DocString]],
        status: Status,
        exception: Optional[Failure],
        background: bool,
    ) -> None:
        state = self.state
        state.current_step_match = step_match
        if exception is not None:
            if state.exception_seen(exception):
                return
            state.seen_exceptions.append(exception)
        if status != Status.FAILED and state.within_background != background:
            return

        self.set_scenario_color(status)
        with self.builder.element("li", {"id": state.step_id, "class": f"step {status.value}"}):
            self.step_name(keyword, step_match, background)
            if multiline_arg is not None:
                self.multiline_arg(multiline_arg)
            if exception is not None:
                self.exception(exception)

    def step_name(self, keyword: str, step_match: StepMatch, background: bool) -> None:
        state = self.state
        signature = step_match.signature()
        background_in_scenario = background and not state.listing_background_section
        state.skip_step = signature in state.seen_step_texts or background_in_scenario
        state.seen_step_texts.append(signature)
        if not state.skip_step:
            self._build_step(keyword, step_match)

    def exception(self, exception: Failure) -> None:
        self._build_exception_detail(exception)

    # --- multiline arguments and tables ---

    def multiline_arg(self, arg: Union[Table, DocString]) -> None:
        if self.state.skip_step:
            return
        if isinstance(arg, Table):
            with self.builder.element("table"):
                for row in arg.rows:
                    self.table_row(row)
        else:
            self.doc_string(arg.content)

    def doc_string(self, content: str) -> None:
        with self.builder.element("pre", {"class": "val"}):
            self.builder.raw(str(escape(content)).replace("\n", "&#x000A;"))

    def table_row(self, row: TableRow) -> None:
        state = self.state
        state.rows_visited += 1
        state.row_id = f"row_{state.rows_visited}"
        state.col_index = 0
        with self.builder.element("tr", {"class": "step"}):
            for cell in row.cells:
                self.table_cell_value(cell.value, cell.status)
        if row.exception is not None:
            with self.builder.element("tr"):
                with self.builder.element("td", {"colspan": str(state.col_index), "class": "step failed"}):
                    self._build_exception_detail(row.exception)
        if state.outline_row_index is not None:
            if state.outline_row_index > 0:
                state.step_index += 1
                self.move_progress()
            state.outline_row_index += 1

    def table_cell_value(self, value: str, status: Optional[Status]) -> None:
        state = self.state
        cell_type = "th" if state.outline_row_index == 0 else "td"
        css_class = "step"
        if status is not None:
            css_class += f" {status.value}"
        attrs = {"id": f"{state.row_id}_{state.col_index}", "class": css_class}
        with self.builder.element(cell_type, attrs):
            with self.builder.element("div"):
                self.builder.leaf("span", value, {"class": "step param"})
        self.set_scenario_color(status)
        state.col_index += 1

    # --- progress and colour ---

    def percent_done(self) -> float:
        return self.state.percent_done()

    def move_progress(self) -> None:
        self.builder.raw(" " + _SCRIPT.format(f"moveProgressBar('{self.percent_done()}');"))

    def set_scenario_color(self, status: Optional[Status]) -> None:
        """Yellow for undefined, red for failed; red is never repainted."""
        state = self.state
        scenario_id = self._scenario_id()
        # a background has no scenario heading to colour
        in_scenario = not state.within_background
        calls = []
        if status == Status.UNDEFINED:
            if not state.header_marked_failed:
                calls.append(f"makeYellow('{HEADER_ID}');")
            if in_scenario and not state.scenario_marked_failed:
                calls.append(f"makeYellow('{scenario_id}');")
        elif status == Status.FAILED:
            if not state.header_marked_failed:
                calls.append(f"makeRed('{HEADER_ID}');")
                state.header_marked_failed = True
            if in_scenario and not state.scenario_marked_failed:
                calls.append(f"makeRed('{scenario_id}');")
                state.scenario_marked_failed = True
        if calls:
            self.builder.raw(_SCRIPT.format("".join(calls)))

    # --- building blocks ---

    def _scenario_id(self) -> str:
        return f"scenario_{self.state.scenario_index}"

    def _heading(self, tag: str, keyword: str, name: str, attrs: Optional[dict] = None) -> None:
        with self.builder.element(tag, attrs):
            self.builder.leaf("span", keyword, {"class": "keyword"})
            self.builder.text(" ")
            self.builder.leaf("span", name, {"class": "val"})

    def _build_step(self, keyword: str, step_match: StepMatch) -> None:
        with self.builder.element("div"):
            self.builder.leaf("span", keyword, {"class": "keyword"})
            self.builder.text(" ")
            with self.builder.element("span", {"class": "step val"}):
                self.builder.raw(step_name_html(step_match))

    def _build_exception_detail(self, exception: Failure) -> None:
        backtrace = list(exception.backtrace)
        step_match = self.state.current_step_match
        if len(backtrace) == 1 and step_match is not None and step_match.file_colon_line:
            backtrace.insert(0, self._source_location(step_match.file_colon_line))

        with self.builder.element("div", {"class": "message"}):
            self.builder.leaf("pre", exception.message)
        with self.builder.element("div", {"class": "backtrace"}):
            with self.builder.element("pre"):
                self.builder.raw(self.backtrace_html("\n".join(backtrace)))
        if backtrace:
            extra = self.extra_failure_content(backtrace[0])
            if extra:
                self.builder.raw(extra)

    def _source_location(self, file_colon_line: str) -> str:
        root = self.options.project_root.rstrip("/")
        return f"{root}/{file_colon_line}" if root else file_colon_line

    def extra_failure_content(self, file_colon_line: str) -> str:
        snippet = self.snippets.snippet(file_colon_line)
        if not snippet:
            return ""
        return f'<pre class="source"><code>{snippet}</code></pre>'

    def backtrace_html(self, text: str) -> str:
        """Escape a backtrace, turning every file.ext:line into an editor link."""
        parts: List[str] = []
        pos = 0
        for m in _BACKTRACE_LOCATION.finditer(text):
            path, line = m.group(1), m.group(2)
            href = self.options.editor_url.format(path=os.path.abspath(path), line=line)
            parts.append(str(escape(text[pos:m.start()])))
            parts.append(f'<a href="{escape(href)}">{escape(path)}:{line}</a>')
            pos = m.end()
        parts.append(str(escape(text[pos:])))
        return "".join(parts)


def step_name_html(step_match: StepMatch) -> str:
    """Step text with each argument in a param span; everything else escaped."""
    name = step_match.format_args(lambda param: f'<span class="param">{param}</span>')
    escaped = str(escape(name))
    escaped = _ESCAPED_SPAN_OPEN.sub(r'<span class="\1">', escaped)
    return escaped.replace(_ESCAPED_SPAN_CLOSE, "</span>")


# ---------------------------------------------------------------------------
# Public render entry points
# ---------------------------------------------------------------------------

def make_env() -> Environment:
    return Environment(loader=FileSystemLoader(str(_TEMPLATES_DIR)), autoescape=True)


def render_report(
    tree: ResultTree,
    out: TextIO,
    env: Optional[Environment] = None,
    options: Optional[ReportOptions] = None,
    snippets: Optional[SnippetExtractor] = None,
) -> HtmlReportRenderer:
    """Stream the full report for ``tree`` to ``out``; returns the spent renderer."""
    renderer = HtmlReportRenderer(out, env=env, options=options, snippets=snippets)
    traverse(tree, renderer)
    return renderer


def render(
    tree: ResultTree,
    env: Environment,
    output_path: Path,
    options: Optional[ReportOptions] = None,
) -> None:
    """Write the report to output_path (parent directories are created)."""
    output_path = Path(output_path)

    # When called from the pipeline the loader is already set; when called
    # directly (e.g. tests), point it at the package templates dir.
    if env.loader is None:
        env = env.overlay(loader=FileSystemLoader(str(_TEMPLATES_DIR)))

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as out:
        render_report(tree, out, env=env, options=options)
