"""
Source snippets for failure detail.

Given a ``file:line`` reference, return a few lines of highlighted source
around it, line-numbered, with the offending line marked.

Highlighting uses Pygments when the ``highlight`` extra is installed; the
choice is made once, when a SnippetExtractor is built.
"""

import re
from importlib.util import find_spec
from pathlib import Path
from typing import Optional, Protocol, Tuple

from markupsafe import escape

from ._util import debug, safe_read_lines

_FILE_COLON_LINE = re.compile(r"(.*):(\d+)")

HIGHLIGHTER_NOTICE = (
    '<span class="comment"># pip install cukehtml[highlight] '
    "to get syntax highlighting</span>"
)


class Highlighter(Protocol):
    """Turns a block of source code into HTML, one output line per input line."""

    plain: bool

    def convert(self, code: str, filename: str = "") -> str:
        ...


class PlainHighlighter:
    """Escapes code without colouring it."""

    plain = True

    def convert(self, code: str, filename: str = "") -> str:
        return str(escape(code))


class PygmentsHighlighter:
    """Colours code with the Pygments lexer matching the file name."""

    plain = False

    def __init__(self):
        from pygments.formatters import HtmlFormatter

        self._formatter = HtmlFormatter(nowrap=True)

    def _lexer(self, filename: str):
        from pygments.lexers import TextLexer, get_lexer_for_filename
        from pygments.util import ClassNotFound

        # stripnl=False keeps leading blank lines, so line numbers stay aligned
        try:
            return get_lexer_for_filename(filename, stripnl=False)
        except ClassNotFound:
            return TextLexer(stripnl=False)

    def convert(self, code: str, filename: str = "") -> str:
        from pygments import highlight

        html = highlight(code, self._lexer(filename), self._formatter)
        if not code.endswith("\n") and html.endswith("\n"):
            html = html[:-1]
        return html


def default_highlighter() -> Highlighter:
    if find_spec("pygments") is not None:
        return PygmentsHighlighter()
    debug("snippets", "pygments not installed, snippets will not be highlighted")
    return PlainHighlighter()


class SnippetExtractor:
    def __init__(self, highlighter: Optional[Highlighter] = None):
        self.highlighter = highlighter if highlighter is not None else default_highlighter()

    def snippet(self, file_colon_line: str) -> str:
        m = _FILE_COLON_LINE.match(file_colon_line)
        filename = m.group(1) if m else ""
        raw_code, first_line, line = self.snippet_for(file_colon_line)
        highlighted = self.highlighter.convert(raw_code, filename)
        if self.highlighter.plain:
            highlighted += "\n" + HIGHLIGHTER_NOTICE
        return self.post_process(highlighted, first_line, line)

    def snippet_for(self, file_colon_line: str) -> Tuple[str, int, Optional[int]]:
        """Return (code, number of its first line, offending line or None)."""
        m = _FILE_COLON_LINE.match(file_colon_line)
        if not m:
            return f"# Couldn't get snippet for {file_colon_line}", 1, None
        line = int(m.group(2))
        code, first_line = self.lines_around(m.group(1), line)
        if first_line is None:
            return code, line, None
        return code, first_line, line

    def lines_around(self, file: str, line: int) -> Tuple[str, Optional[int]]:
        """Two lines either side of the 1-based ``line``, clamped to the file."""
        path = Path(file)
        if not path.is_file():
            debug("snippets", f"no source file {file}")
            return f"# Couldn't get snippet for {file}", None
        lines = safe_read_lines(path, "snippets")
        if not lines:
            return f"# Couldn't get snippet for {file}", None
        first = max(0, line - 3)
        last = min(line + 1, len(lines) - 1)
        return "\n".join(lines[first:last + 1]), first + 1

    def post_process(self, highlighted: str, first_line: int, offending_line: Optional[int]) -> str:
        out = []
        for i, text in enumerate(highlighted.split("\n")):
            number = first_line + i
            numbered = f'<span class="linenum">{number}</span>{text}'
            if number == offending_line:
                numbered = f'<span class="offending">{numbered}</span>'
            out.append(numbered)
        return "\n".join(out)
