"""Report generation package."""

from debtq.reports.markdown import DebtReportWriter

__all__ = ["DebtReportWriter"]
