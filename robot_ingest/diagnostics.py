import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from lxml import etree

__all__ = ["Severity", "Diagnostic", "DiagnosticPolicy", "DocumentDiagnostic", "ParsingError"]

console_logger = logging.getLogger(__name__)

LITERAL_STRING_LABEL = "<literal-string>"


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


class ParsingError(RuntimeError):
    """Raised for a diagnostic when the policy is configured to throw"""

    def __init__(self, diagnostic: "Diagnostic"):
        super().__init__(diagnostic.format())
        self.diagnostic = diagnostic


@dataclass(frozen=True)
class Diagnostic:
    """A severity-tagged, located message describing a parsing anomaly

    Attributes:
        severity: Error or warning
        filename: Path of the source file, or the literal-string label for in-memory text
        line: Line number the message refers to
        message: Text naming the offending tag or attribute
    """

    severity: Severity
    filename: str
    line: int
    message: str

    def format(self) -> str:
        """Render as '<filename>:<line>: <severity>: <message>'"""
        return f"{self.filename}:{self.line}: {self.severity.value}: {self.message}"


DiagnosticAction = Callable[[Diagnostic], None]


def _log_warning(diagnostic: Diagnostic) -> None:
    console_logger.warning(diagnostic.format())


def _log_error(diagnostic: Diagnostic) -> None:
    console_logger.error(diagnostic.format())


def _throw(diagnostic: Diagnostic) -> None:
    raise ParsingError(diagnostic)


class DiagnosticPolicy:
    """Receives each diagnostic as it is produced

    Every diagnostic is recorded in encounter order and then handed to the
    configured action for its severity. By default warnings and errors are
    logged and parsing carries on.

    Attributes:
        diagnostics: All diagnostics received, in encounter order
    """

    def __init__(self, on_warning: DiagnosticAction | None = None, on_error: DiagnosticAction | None = None):
        """Initialize policy

        Args:
            on_warning: Action invoked for each warning, defaults to logging it
            on_error: Action invoked for each error, defaults to logging it
        """
        self.diagnostics: list[Diagnostic] = []
        self._on_warning = on_warning or _log_warning
        self._on_error = on_error or _log_error

    def set_actions_to_throw(self) -> None:
        """Raise ParsingError for every subsequent warning or error"""
        self._on_warning = _throw
        self._on_error = _throw

    def warning(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)
        self._on_warning(diagnostic)

    def error(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)
        self._on_error(diagnostic)

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.ERROR]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.WARNING]

    def take_error(self) -> str:
        """Remove the oldest error and return its formatted text

        Raises:
            LookupError: If no error has been recorded
        """
        return self._take(Severity.ERROR)

    def take_warning(self) -> str:
        """Remove the oldest warning and return its formatted text

        Raises:
            LookupError: If no warning has been recorded
        """
        return self._take(Severity.WARNING)

    def _take(self, severity: Severity) -> str:
        for i, diagnostic in enumerate(self.diagnostics):
            if diagnostic.severity is severity:
                del self.diagnostics[i]
                return diagnostic.format()
        raise LookupError(f"No {severity.value} has been recorded")


class DocumentDiagnostic:
    """Binds a DiagnosticPolicy to one source document

    Locations are the element's source line for file-backed documents and
    line 1 for in-memory text.
    """

    def __init__(self, policy: DiagnosticPolicy, filename: str | None, extension: str = "urdf"):
        """Initialize document diagnostic

        Args:
            policy: Policy receiving the diagnostics
            filename: Path of the source file, or None for in-memory text
            extension: File extension used in the literal-string label
        """
        self.policy = policy
        self.in_memory = filename is None
        self.filename = filename if filename is not None else f"{LITERAL_STRING_LABEL}.{extension}"

    def _line(self, elem: etree._Element | None) -> int:
        if self.in_memory:
            return 1
        if elem is None or elem.sourceline is None:
            return 0
        return elem.sourceline

    def make_diagnostic(self, severity: Severity, elem: etree._Element | None, message: str) -> Diagnostic:
        return Diagnostic(severity=severity, filename=self.filename, line=self._line(elem), message=message)

    def error(self, elem: etree._Element | None, message: str) -> None:
        self.policy.error(self.make_diagnostic(Severity.ERROR, elem, message))

    def warning(self, elem: etree._Element | None, message: str) -> None:
        self.policy.warning(self.make_diagnostic(Severity.WARNING, elem, message))
