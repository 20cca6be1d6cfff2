"""
Result tree schema.

Strongly typed contract between the host that ran the features and the report
renderer. The host (or a results JSON file) produces data that fits into this
schema; the traversal and step counter consume it read-only.
"""

from enum import Enum
from typing import Callable, List, Optional, Tuple, Union

from pydantic import BaseModel, Field, field_validator

SCHEMA_VERSION = 1


class Status(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    UNDEFINED = "undefined"
    PENDING = "pending"


# Order used by the totals line in the report header.
SUMMARY_ORDER = (
    Status.FAILED,
    Status.SKIPPED,
    Status.UNDEFINED,
    Status.PENDING,
    Status.PASSED,
)


# --- Failures ---


class Failure(BaseModel):
    """
    An exception raised while running a step or an outline row.

    Compared by identity: the same object may surface at several nodes
    (e.g. a background step replayed in every scenario). ``id`` lets a
    results file express that sharing; see pipeline.intern_failures.
    """

    message: str
    backtrace: List[str] = Field(default_factory=list)
    id: Optional[str] = None


# --- Step matches ---


class StepArgument(BaseModel):
    """A parameter value captured from the step text, at a character offset."""

    value: str
    offset: int


class StepMatch(BaseModel):
    """Resolved binding between a step's text and its implementation."""

    name: str
    args: List[StepArgument] = Field(default_factory=list)
    file_colon_line: str = ""  # step definition location, e.g. "steps/calc.py:12"

    def format_args(self, fmt: Callable[[str], str]) -> str:
        """Return the step name with every argument value replaced by fmt(value)."""
        text = self.name
        shift = 0
        for arg in sorted(self.args, key=lambda a: a.offset):
            start = arg.offset + shift
            replacement = fmt(arg.value)
            text = text[:start] + replacement + text[start + len(arg.value):]
            shift += len(replacement) - len(arg.value)
        return text

    def signature(self) -> Tuple:
        return (
            self.name,
            tuple((a.value, a.offset) for a in self.args),
            self.file_colon_line,
        )


# --- Tables and multiline arguments ---


class Cell(BaseModel):
    value: str
    status: Optional[Status] = None


class TableRow(BaseModel):
    cells: List[Cell] = Field(default_factory=list)
    exception: Optional[Failure] = None


class Table(BaseModel):
    """A data table: outline examples or a step's multiline table argument."""

    rows: List[TableRow] = Field(default_factory=list)

    model_config = {"extra": "forbid"}

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.rows[0].cells) if self.rows else 0


class DocString(BaseModel):
    """Block text attached to a step."""

    content: str

    model_config = {"extra": "forbid"}


# --- Steps, scenarios, features ---


class Step(BaseModel):
    keyword: str
    step_match: StepMatch
    status: Status = Status.SKIPPED
    exception: Optional[Failure] = None
    multiline_arg: Optional[Union[Table, DocString]] = None


class Background(BaseModel):
    keyword: str = "Background"
    name: str = ""
    file_colon_line: str = ""
    steps: List[Step] = Field(default_factory=list)


class Examples(BaseModel):
    keyword: str = "Examples"
    name: str = ""
    table: Table

    @field_validator("table")
    @classmethod
    def _has_header_row(cls, table: Table) -> Table:
        if not table.rows:
            raise ValueError("examples table needs at least a header row")
        return table


class Scenario(BaseModel):
    """A plain scenario, or a scenario outline when ``outline`` is set."""

    keyword: str = "Scenario"
    name: str = ""
    file_colon_line: str = ""
    outline: bool = False
    comments: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    steps: List[Step] = Field(default_factory=list)
    examples: List[Examples] = Field(default_factory=list)


class Feature(BaseModel):
    comments: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    name: str = ""
    background: Optional[Background] = None
    elements: List[Scenario] = Field(default_factory=list)


# --- Root ---


class ResultTree(BaseModel):
    """
    Full run result. Serialized as a results JSON file.
    ``duration`` is the wall-clock run time in seconds.
    """

    schema_version: int = SCHEMA_VERSION
    features: List[Feature] = Field(default_factory=list)
    duration: float = 0.0

    model_config = {"extra": "forbid"}


# --- Report options ---


class ReportOptions(BaseModel):
    """Options bag forwarded from the host; unknown keys are kept, not rejected."""

    title: str = "Cucumber"
    heading: str = "Cucumber Features"
    project_root: str = ""  # prefix for single-frame backtraces
    editor_url: str = "txmt://open?url=file://{path}&line={line}"

    @field_validator("editor_url")
    @classmethod
    def _editor_url_formats(cls, template: str) -> str:
        """Only {path} and {line} may appear; anything else would fail mid-report."""
        try:
            template.format(path="/x.py", line="1")
        except (KeyError, IndexError, AttributeError, ValueError) as exc:
            raise ValueError(f"editor_url template {template!r} is invalid: {exc!r}") from exc
        return template

    model_config = {"extra": "allow"}
