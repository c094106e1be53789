"""Compile reporter chapters into one HTML diagnostics report.

Pipeline, single pass and synchronous:

1. Every reporter produces its chapter, in the order given
2. Every filter is applied to every chapter, in the order given
3. Titles are checked for uniqueness and turned into navigation anchors
4. The Jinja2 page template renders the menu and the chapter bodies

Usage:
    from runtime_diagnostics.reporting.compiler import DiagnosticsReporter

    reporter = DiagnosticsReporter(
        reporters=[LogsReporter(store), UserDefaultsReporter(prefs)],
        filters=[KeyRedactionFilter(["token"])],
        title="MyApp - Diagnostics Report",
    )
    report = reporter.create()
    report.save_to("./reports")
"""

from collections.abc import Sequence
from dataclasses import dataclass
from functools import lru_cache

from jinja2 import Environment, PackageLoader, select_autoescape
from markupsafe import Markup

from runtime_diagnostics.core.exceptions import DuplicateChapterError
from runtime_diagnostics.core.logging import get_logger
from runtime_diagnostics.reporting.chapter import DiagnosticsChapter
from runtime_diagnostics.reporting.filters import ReportFilter
from runtime_diagnostics.reporting.report import REPORT_FILENAME, DiagnosticsReport
from runtime_diagnostics.reporting.reporters import Reporter

logger = get_logger(__name__)

DEFAULT_TITLE = "Diagnostics Report"


@lru_cache(maxsize=1)
def get_environment() -> Environment:
    """Jinja2 environment loading the templates shipped with the package."""
    return Environment(
        loader=PackageLoader("runtime_diagnostics", "templates"),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


@dataclass
class RenderedChapter:
    """A chapter paired with its unique anchor and rendered body."""

    title: str
    anchor: str
    shows_title: bool
    body: Markup


class DiagnosticsReporter:
    """Runs reporters and filters and renders the result."""

    def __init__(
        self,
        reporters: Sequence[Reporter],
        filters: Sequence[ReportFilter] | None = None,
        title: str = DEFAULT_TITLE,
        filename: str = REPORT_FILENAME,
    ):
        self._reporters = list(reporters)
        self._filters = list(filters or [])
        self._title = title
        self._filename = filename

    def create(self) -> DiagnosticsReport:
        """Compile the report.

        Raises:
            DuplicateChapterError: If two chapters share a title.
        """
        chapters = self.compile_chapters()
        html = self.generate_html(chapters)
        logger.info(
            "Diagnostics report compiled",
            chapters=[chapter.title for chapter in chapters],
            size=len(html),
        )
        return DiagnosticsReport.from_html(html, filename=self._filename)

    def compile_chapters(self) -> list[DiagnosticsChapter]:
        """Produce and filter the chapters of every reporter."""
        chapters = []
        for reporter in self._reporters:
            chapter = reporter.produce_chapter()
            for report_filter in self._filters:
                chapter = report_filter.apply(chapter)
            chapters.append(chapter)
        return chapters

    def generate_html(self, chapters: Sequence[DiagnosticsChapter]) -> str:
        """Render chapters into the full HTML page."""
        rendered = [
            RenderedChapter(
                title=chapter.title,
                anchor=anchor,
                shows_title=chapter.shows_title,
                body=chapter.html(),
            )
            for chapter, anchor in zip(chapters, unique_anchors(chapters))
        ]
        template = get_environment().get_template("report.html")
        return template.render(title=self._title, chapters=rendered)


def unique_anchors(chapters: Sequence[DiagnosticsChapter]) -> list[str]:
    """Anchors for ``chapters``, one per chapter and all distinct.

    Distinct titles that normalise to the same anchor get a numeric suffix.

    Raises:
        DuplicateChapterError: If two chapters have exactly the same title.
    """
    titles: set[str] = set()
    anchors: list[str] = []
    for chapter in chapters:
        if chapter.title in titles:
            raise DuplicateChapterError(
                f"More than one chapter is titled {chapter.title!r}"
            )
        titles.add(chapter.title)

        anchor = chapter.anchor
        candidate = anchor
        counter = 2
        while candidate in anchors:
            candidate = f"{anchor}-{counter}"
            counter += 1
        anchors.append(candidate)
    return anchors
