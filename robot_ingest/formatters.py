from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass

from .diagnostics import Diagnostic, Severity
from .plant import MultibodyModel

__all__ = ["IngestReport", "ReportFormatter", "PlainFormatter", "ColorFormatter"]

# ANSI color codes
RED = "\033[31m"
GREEN = "\033[32m"
YELLOW = "\033[33m"
RESET = "\033[0m"


@dataclass(frozen=True)
class IngestReport:
    """Outcome of adding one document to a model

    Attributes:
        model: Model the document was added to
        model_instance: Handle of the new model instance, None if parsing failed
        diagnostics: Diagnostics reported while parsing, in encounter order
    """

    model: MultibodyModel
    model_instance: int | None
    diagnostics: list[Diagnostic]

    @property
    def num_errors(self) -> int:
        return sum(d.severity is Severity.ERROR for d in self.diagnostics)

    @property
    def num_warnings(self) -> int:
        return sum(d.severity is Severity.WARNING for d in self.diagnostics)


class ReportFormatter(ABC):
    """Base class for all report formatters

    Attributes:
        report: IngestReport object to format
    """

    def __init__(self, report: IngestReport):
        self.report = report

    @abstractmethod
    def format(self) -> str:
        """Format the report"""
        pass

    def _colorize(self, text: str, color: str) -> str:
        """Apply ANSI color to text

        Args:
            text: Text to colorize
            color: ANSI color code to apply

        Returns:
            Colorized string
        """
        return f"{color}{text}{RESET}"

    def _wrap_bars(self, text: str) -> str:
        """Wrap text in horizontal bars (━)

        Args:
            text: Text to wrap

        Returns:
            Formatted string
        """
        return f"━━━ {text} ━━━"

    def _format_diagnostic(self, diagnostic: Diagnostic) -> str:
        return diagnostic.format()

    def _format_status(self) -> str:
        if self.report.model_instance is None:
            return "FAILED"
        return "OK"

    def _format_model_section(self) -> list[str]:
        """Format counts of everything committed to the new model instance

        Returns:
            List of formatted lines
        """
        model = self.report.model
        model_instance = self.report.model_instance
        if model_instance is None:
            return []

        def count(items: list) -> int:
            return sum(item.model_instance == model_instance for item in items)

        joint_types = Counter(joint.spec.type.value for joint in model.joints if joint.model_instance == model_instance)

        lines = [self._wrap_bars("MODEL"), ""]
        lines.append(f"Name: {model.model_instance_name(model_instance)} (instance {model_instance})")
        lines.append(f"Bodies: {count(model.bodies)}")
        lines.append(f"Frames: {count(model.frames)}")
        lines.append(f"Joints: {count(model.joints)}")
        for joint_type, joint_count in sorted(joint_types.items()):
            lines.append(f"  • {joint_type}: {joint_count}")
        lines.append(f"Actuators: {count(model.actuators)}")
        lines.append(f"Bushings: {count(model.force_elements)}")
        lines.append(f"Filtered collision pairs: {model.num_filtered_pairs_in(model_instance)}")
        lines.append("")
        return lines

    def _format_diagnostics_section(self) -> list[str]:
        if not self.report.diagnostics:
            return []

        lines = [self._wrap_bars("DIAGNOSTICS"), ""]
        lines.extend(self._format_diagnostic(diagnostic) for diagnostic in self.report.diagnostics)
        lines.append("")
        return lines

    def _format_summary(self) -> list[str]:
        return [
            "═" * 45,
            f"SUMMARY: {self._format_status()}, {self.report.num_errors} errors, {self.report.num_warnings} warnings",
            "═" * 45,
        ]


class PlainFormatter(ReportFormatter):
    """Formatter without color codes, suitable for logs and pipes"""

    def format(self) -> str:
        """Format the report

        Returns:
            Formatted string
        """
        lines = []
        lines.extend(self._format_diagnostics_section())
        lines.extend(self._format_model_section())
        lines.extend(self._format_summary())

        return "\n".join(lines).rstrip()


class ColorFormatter(PlainFormatter):
    """Formatter that highlights errors in red and warnings in yellow"""

    def _format_diagnostic(self, diagnostic: Diagnostic) -> str:
        color = RED if diagnostic.severity is Severity.ERROR else YELLOW
        return self._colorize(diagnostic.format(), color)

    def _format_status(self) -> str:
        if self.report.model_instance is None:
            return self._colorize("FAILED", RED)
        return self._colorize("OK", GREEN)
