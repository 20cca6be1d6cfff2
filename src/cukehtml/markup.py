"""
Streaming markup builder.

Writes elements straight to the output stream as they are opened, so inline
<script> fragments reach the browser at the point they are emitted. Text and
attribute values go through markupsafe; raw() is the only unescaped path.
"""

from contextlib import contextmanager
from typing import Iterator, List, Optional, TextIO

from markupsafe import Markup, escape


def _attrs(attrs: Optional[dict]) -> str:
    if not attrs:
        return ""
    return "".join(f' {name}="{escape(value)}"' for name, value in attrs.items())


class MarkupBuilder:
    """Well-formed nested markup over a text stream."""

    def __init__(self, out: TextIO):
        self._out = out
        self._open: List[str] = []

    @property
    def depth(self) -> int:
        return len(self._open)

    def open_element(self, tag: str, attrs: Optional[dict] = None) -> None:
        self._out.write(f"<{tag}{_attrs(attrs)}>")
        self._open.append(tag)

    def close_element(self) -> None:
        tag = self._open.pop()
        self._out.write(f"</{tag}>")

    @contextmanager
    def element(self, tag: str, attrs: Optional[dict] = None) -> Iterator[None]:
        self.open_element(tag, attrs)
        try:
            yield
        finally:
            self.close_element()

    def leaf(self, tag: str, content: str = "", attrs: Optional[dict] = None) -> None:
        """Element holding escaped text only."""
        self._out.write(f"<{tag}{_attrs(attrs)}>{escape(content)}</{tag}>")

    def empty(self, tag: str, attrs: Optional[dict] = None) -> None:
        self._out.write(f"<{tag}{_attrs(attrs)} />")

    def text(self, content: str) -> None:
        self._out.write(str(escape(content)))

    def raw(self, content: str) -> None:
        self._out.write(str(Markup(content)))
