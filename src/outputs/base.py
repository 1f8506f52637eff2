"""
Base report formatter interface.

Defines the contract that all report formatters must implement.
"""

from abc import ABC, abstractmethod

from core.orchestrator import AuditReport


class ReportFormatter(ABC):
    """
    Abstract base class for audit report formatters.

    All formatters (text, JSON) must implement this interface.
    """

    @abstractmethod
    def format(self, report: AuditReport) -> str:
        """
        Render an audit report.

        Args:
            report: Audit report to render

        Returns:
            Rendered report
        """
        pass

    @abstractmethod
    def supports_format(self) -> str:
        """
        Return the format this formatter supports.

        Returns:
            Format identifier (e.g., "text", "json")
        """
        pass
