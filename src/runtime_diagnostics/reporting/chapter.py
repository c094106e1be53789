"""Report chapters and their default HTML rendering."""

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from markupsafe import Markup, escape

HTMLFormatter = Callable[[Any], str]


def anchor_for(title: str) -> str:
    """Navigation anchor for a chapter title."""
    return title.lower().replace(" ", "-")


def json_compatible(value: Any) -> Any:
    """Convert arbitrary preference values into JSON-serialisable ones.

    Nested mappings are converted recursively, sequence items and every
    other scalar are turned into strings.
    """
    if isinstance(value, Mapping):
        return {str(key): json_compatible(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [str(item) for item in value]
    return str(value)


def pretty_json(value: Any) -> str:
    """Sorted, indented JSON for a mapping of arbitrary values."""
    return json.dumps(json_compatible(value), indent=2, sort_keys=True, ensure_ascii=False)


def diagnostics_html(diagnostics: Any) -> Markup:
    """Default HTML for chapter content.

    Text is shown preformatted, mappings as a two-column table and anything
    else through its ``str()``.
    """
    if isinstance(diagnostics, bytes):
        diagnostics = diagnostics.decode("utf-8", errors="replace")

    if isinstance(diagnostics, Mapping):
        rows = Markup("").join(
            Markup("<tr><th>{}</th><td>{}</td></tr>").format(key, value)
            for key, value in diagnostics.items()
        )
        return Markup("<table>{}</table>").format(rows)

    return Markup("<pre>{}</pre>").format(escape(str(diagnostics)))


@dataclass
class DiagnosticsChapter:
    """One titled section of a diagnostics report.

    Attributes:
        title: Unique title within the report, also used for the anchor.
        diagnostics: Reporter specific content, usually text or a mapping.
        formatter: Optional callable turning ``diagnostics`` into HTML.
            Its output is trusted and inserted as-is.
        shows_title: Whether the title is rendered above the content.
        applied_filters: Names of the filters that processed the content.
    """

    title: str
    diagnostics: Any
    formatter: HTMLFormatter | None = None
    shows_title: bool = True
    applied_filters: list[str] = field(default_factory=list)

    @property
    def anchor(self) -> str:
        return anchor_for(self.title)

    def html(self) -> Markup:
        """Render the chapter content."""
        if self.formatter is not None:
            return Markup(self.formatter(self.diagnostics))
        return diagnostics_html(self.diagnostics)
