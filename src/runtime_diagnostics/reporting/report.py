"""The compiled diagnostics report."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from runtime_diagnostics.core.logging import get_logger

logger = get_logger(__name__)

REPORT_FILENAME = "Diagnostics-Report.html"


class MimeType(str, Enum):
    """MIME types a report can be encoded as."""

    HTML = "text/html"


@dataclass(frozen=True)
class DiagnosticsReport:
    """Immutable result of compiling all reporter chapters.

    Attributes:
        filename: File name to use when storing or attaching the report.
        html: The rendered HTML document.
        data: The document encoded as UTF-8, ready for storage or transport.
        mime_type: MIME type of ``data``.
    """

    filename: str
    html: str
    data: bytes
    mime_type: MimeType = MimeType.HTML

    @classmethod
    def from_html(cls, html: str, filename: str = REPORT_FILENAME) -> "DiagnosticsReport":
        return cls(filename=filename, html=html, data=html.encode("utf-8"))

    def save_to(self, directory: Path | str) -> Path:
        """Write the report into ``directory``, creating it when missing.

        Returns:
            Path of the written file.
        """
        folder = Path(directory)
        folder.mkdir(parents=True, exist_ok=True)
        path = folder / self.filename
        path.write_bytes(self.data)
        logger.info("Diagnostics report saved", path=str(path), size=len(self.data))
        return path

    def save_to_desktop(self) -> Path:
        """Save into ``~/Desktop/Diagnostics``, handy while debugging."""
        return self.save_to(Path.home() / "Desktop" / "Diagnostics")
