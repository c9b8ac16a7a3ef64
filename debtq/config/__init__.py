"""Configuration package."""

from debtq.config.settings import (
    AllocationOrder,
    AppSettings,
    AuditSettings,
    LedgerSettings,
    PartialStrategy,
    ReportSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AllocationOrder",
    "AppSettings",
    "AuditSettings",
    "LedgerSettings",
    "PartialStrategy",
    "ReportSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
