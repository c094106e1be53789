"""Filters that redact or transform chapter content before rendering.

Filters run in the order they are passed to the compiler, on every chapter.

Example:
    from runtime_diagnostics.reporting.filters import RegexRedactionFilter

    emails = RegexRedactionFilter(r"[\\w.+-]+@[\\w-]+\\.[\\w.]+")
    report = DiagnosticsReporter(reporters, filters=[emails]).create()
"""

import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Any

from runtime_diagnostics.reporting.chapter import DiagnosticsChapter

REDACTED = "[REDACTED]"


class ReportFilter(ABC):
    """Base class for everything that may rewrite a chapter."""

    @abstractmethod
    def apply(self, chapter: DiagnosticsChapter) -> DiagnosticsChapter:
        """Return the filtered chapter, which may be ``chapter`` itself."""


class ContentFilter(ReportFilter):
    """Filter that only looks at a chapter's ``diagnostics``."""

    def apply(self, chapter: DiagnosticsChapter) -> DiagnosticsChapter:
        chapter.diagnostics = self.filter(chapter.diagnostics)
        chapter.applied_filters.append(type(self).__name__)
        return chapter

    @abstractmethod
    def filter(self, diagnostics: Any) -> Any:
        """Return the filtered content."""


class RegexRedactionFilter(ContentFilter):
    """Replace every match of a pattern in text content.

    Mapping values are processed recursively; keys are left alone.
    """

    def __init__(self, pattern: str | re.Pattern[str], replacement: str = REDACTED):
        self._pattern = re.compile(pattern) if isinstance(pattern, str) else pattern
        self._replacement = replacement

    def filter(self, diagnostics: Any) -> Any:
        if isinstance(diagnostics, str):
            return self._pattern.sub(self._replacement, diagnostics)
        if isinstance(diagnostics, bytes):
            text = diagnostics.decode("utf-8", errors="replace")
            return self._pattern.sub(self._replacement, text)
        if isinstance(diagnostics, Mapping):
            return {key: self.filter(value) for key, value in diagnostics.items()}
        if isinstance(diagnostics, list):
            return [self.filter(value) for value in diagnostics]
        return diagnostics


class KeyRedactionFilter(ContentFilter):
    """Hide the values of sensitive keys in mapping content."""

    def __init__(self, keys: Iterable[str], replacement: str = REDACTED):
        self._keys = {key.lower() for key in keys}
        self._replacement = replacement

    def filter(self, diagnostics: Any) -> Any:
        if not isinstance(diagnostics, Mapping):
            return diagnostics
        return {
            key: self._replacement
            if str(key).lower() in self._keys
            else self.filter(value)
            for key, value in diagnostics.items()
        }
