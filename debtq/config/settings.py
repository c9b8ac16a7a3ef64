"""
Configuration Management for debtq

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The ledger core never reads the environment itself; it receives the
values it needs (partial strategy, allocation order) from these settings.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_CONFIG_DIR = Path.home() / ".config" / "debtq"


class PartialStrategy(str, Enum):
    """
    How person-level settlement handles a record it only partly covers.

    REDUCE shrinks the record in place (it stays unsettled).
    SPLIT behaves like settling a single transaction: the record is reduced
    and a new, already-settled record carries the settled portion.
    """
    REDUCE = "reduce"
    SPLIT = "split"


class AllocationOrder(str, Enum):
    """Order in which person-level settlement walks a person's records."""
    STORAGE = "storage"            # Insertion order
    OLDEST_FIRST = "oldest_first"  # By transaction date, ties keep insertion order


class LedgerSettings(BaseSettings):
    """Ledger storage and settlement configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DEBTQ_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_file: Path = Field(
        default=DEFAULT_CONFIG_DIR / "data.json",
        description="Path of the JSON document holding all transactions"
    )
    currency: str = Field(
        default="INR",
        min_length=1,
        max_length=8,
        description="Display currency (no conversion is performed)"
    )
    partial_strategy: PartialStrategy = Field(
        default=PartialStrategy.REDUCE,
        description="How person-level settlement treats partly covered records"
    )
    allocation_order: AllocationOrder = Field(
        default=AllocationOrder.STORAGE,
        description="Order in which person-level settlement allocates"
    )
    partial_settlement_marker: str = Field(
        default=" (partial settlement)",
        description="Suffix appended to the description of split-off records"
    )
    save_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="How many times a failed save is attempted"
    )

    @field_validator("data_file")
    @classmethod
    def expand_data_file(cls, v: Path) -> Path:
        """Allow ~ in the configured path."""
        return v.expanduser()


class ReportSettings(BaseSettings):
    """Markdown report (Obsidian vault) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DEBTQ_REPORT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    enabled: bool = Field(
        default=False,
        description="Rewrite the debts note after every successful change"
    )
    vault_path: Path = Field(
        default=Path.home() / "Documents" / "obsidian-notes" / "debtq",
        description="Directory the markdown notes are written to"
    )
    filename: str = Field(
        default="Debts.md",
        description="Name of the debts summary note"
    )

    @field_validator("vault_path")
    @classmethod
    def expand_vault_path(cls, v: Path) -> Path:
        return v.expanduser()

    @field_validator("filename")
    @classmethod
    def validate_filename(cls, v: str) -> str:
        """The note must live directly inside the vault directory."""
        if not v or "/" in v or "\\" in v:
            raise ValueError(f"Invalid report filename: {v!r}")
        return v


class AuditSettings(BaseSettings):
    """Audit trail configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DEBTQ_AUDIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    enabled: bool = Field(
        default=True,
        description="Append audit events to the audit log file"
    )
    log_file: Path = Field(
        default=DEFAULT_CONFIG_DIR / "audit.jsonl",
        description="Append-only JSON lines audit log"
    )

    @field_validator("log_file")
    @classmethod
    def expand_log_file(cls, v: Path) -> Path:
        return v.expanduser()


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="DEBTQ_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Human-readable console logs instead of JSON lines"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def report(self) -> ReportSettings:
        return ReportSettings()

    @property
    def audit(self) -> AuditSettings:
        return AuditSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with a
    "<name>_error" entry describing each failure.
    """
    results = {}

    settings = get_settings()

    for name in ("ledger", "report", "audit", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
