"""Configuration system for the TravelNurse tax engine.

This module provides Pydantic Settings-based configuration with environment
variable support and sensible defaults for every calculator in the engine.

Usage:
    from travelnurse_core.config import TravelNurseConfig

    # Load from environment variables and .env file
    config = TravelNurseConfig()

    # Access scheduling settings
    print(config.schedule.due_soon_days)
    print(config.schedule.reminder_offsets)

    # Access offer comparison settings
    print(config.offers.weeks_worked)
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models.tax import FilingStatus, USState


class TaxSettings(BaseSettings):
    """Tax calculation settings.

    Holds the constants of the flat-rate fallback estimate. The progressive
    bracket tables themselves live in ``travelnurse_core.tax_tables``.

    Environment Variables:
        TRAVELNURSE_TAX_FALLBACK_FEDERAL_RATE: Flat federal rate for the fallback
        TRAVELNURSE_TAX_FALLBACK_SELF_EMPLOYMENT_RATE: Flat SE rate for the fallback
        TRAVELNURSE_TAX_SELF_EMPLOYED_BY_DEFAULT: Treat income as self-employment
    """

    model_config = SettingsConfigDict(
        env_prefix="TRAVELNURSE_TAX_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    fallback_federal_rate: Decimal = Field(
        default=Decimal("0.22"),
        ge=0,
        lt=1,
        description="Flat federal rate used when progressive tables are unavailable",
    )
    fallback_self_employment_rate: Decimal = Field(
        default=Decimal("0.153"),
        ge=0,
        lt=1,
        description="Flat self-employment rate used by the fallback estimate",
    )
    self_employed_by_default: bool = Field(
        default=True,
        description="Travel nurses usually file stipend income as self-employed",
    )


class ScheduleSettings(BaseSettings):
    """Quarterly payment scheduling settings.

    Environment Variables:
        TRAVELNURSE_SCHEDULE_DUE_SOON_DAYS: Window (days) in which a payment is due soon
        TRAVELNURSE_SCHEDULE_REMINDER_OFFSETS: Days before the due date to remind
    """

    model_config = SettingsConfigDict(
        env_prefix="TRAVELNURSE_SCHEDULE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    due_soon_days: int = Field(
        default=30,
        ge=0,
        le=365,
        description="A payment due within this many days is 'due soon'",
    )
    reminder_offsets: list[int] = Field(
        default_factory=lambda: [14, 7, 1],
        description="Days before each due date on which to send a reminder",
    )

    @field_validator("reminder_offsets")
    @classmethod
    def validate_reminder_offsets(cls, v: list[int]) -> list[int]:
        """Offsets must be positive; keep them unique and furthest-first."""
        if any(offset <= 0 for offset in v):
            raise ValueError("Reminder offsets must be positive day counts")
        return sorted(set(v), reverse=True)


class ComplianceSettings(BaseSettings):
    """Tax home compliance settings.

    Environment Variables:
        TRAVELNURSE_COMPLIANCE_RETURN_LIMIT_DAYS: Days allowed away from the tax home
        TRAVELNURSE_COMPLIANCE_AT_RISK_DAYS: Countdown at which the rule is at risk
        TRAVELNURSE_COMPLIANCE_PARTIAL_CREDIT: Fraction of weight a partial item earns
    """

    model_config = SettingsConfigDict(
        env_prefix="TRAVELNURSE_COMPLIANCE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    return_limit_days: int = Field(
        default=30,
        gt=0,
        description="Maximum days away from the tax home before a return visit",
    )
    at_risk_days: int = Field(
        default=7,
        ge=0,
        description="Countdown threshold below which the 30-day rule is at risk",
    )
    partial_credit: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        le=1,
        description="Share of an item's weight earned by a 'partial' status",
    )
    one_year_warning_days: list[int] = Field(
        default_factory=lambda: [300, 330, 350],
        description="Days at one assignment location that trigger a one-year-rule warning",
    )


class OfferSettings(BaseSettings):
    """Job offer comparison settings.

    Environment Variables:
        TRAVELNURSE_OFFERS_WEEKS_WORKED: Weeks per year used for annual projections
        TRAVELNURSE_OFFERS_GSA_DAILY_LODGING: Default GSA lodging ceiling
        TRAVELNURSE_OFFERS_GSA_DAILY_MEALS: Default GSA meals ceiling
    """

    model_config = SettingsConfigDict(
        env_prefix="TRAVELNURSE_OFFERS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    weeks_worked: int = Field(
        default=48,
        ge=0,
        le=53,
        description="Weeks worked per year for annual projections",
    )
    gsa_daily_lodging: Decimal = Field(
        default=Decimal("107"),
        ge=0,
        description="GSA standard daily lodging rate (national default)",
    )
    gsa_daily_meals: Decimal = Field(
        default=Decimal("79"),
        ge=0,
        description="GSA standard daily M&IE rate (national default)",
    )


class TravelNurseConfig(BaseSettings):
    """Root configuration for the TravelNurse tax engine.

    Environment Variables:
        TRAVELNURSE_ENV: Environment name (development, staging, production, test)
        TRAVELNURSE_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
        TRAVELNURSE_LOG_FORMAT: "console" or "json"
        TRAVELNURSE_DEFAULT_STATE: Tax home state used when none is declared
        TRAVELNURSE_FILING_STATUS: Federal filing status
        TRAVELNURSE_TAX_YEAR: Tax year to plan (defaults to the current year)

    Example:
        config = TravelNurseConfig(
            schedule=ScheduleSettings(due_soon_days=14),
            offers=OfferSettings(weeks_worked=52),
        )
    """

    model_config = SettingsConfigDict(
        env_prefix="TRAVELNURSE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    env: str = Field(
        default="development",
        description="Environment name (development, staging, production, test)",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: str = Field(
        default="console",
        description="Log renderer: console or json",
    )
    default_state: USState = Field(
        default=USState.TX,
        description="Tax home state assumed when the user has not declared one",
    )
    filing_status: FilingStatus = Field(
        default=FilingStatus.SINGLE,
        description="Federal filing status",
    )
    tax_year: Optional[int] = Field(
        default=None,
        ge=2000,
        le=2100,
        description="Tax year to plan; None means the current calendar year",
    )

    tax: TaxSettings = Field(default_factory=TaxSettings)
    schedule: ScheduleSettings = Field(default_factory=ScheduleSettings)
    compliance: ComplianceSettings = Field(default_factory=ComplianceSettings)
    offers: OfferSettings = Field(default_factory=OfferSettings)

    @field_validator("env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment name."""
        valid_envs = {"development", "staging", "production", "test"}
        v_lower = v.lower().strip()
        if v_lower not in valid_envs:
            raise ValueError(f"Invalid environment: {v}. Must be one of: {valid_envs}")
        return v_lower

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper().strip()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of: {valid_levels}")
        return v_upper

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log renderer name."""
        v_lower = v.lower().strip()
        if v_lower not in {"console", "json"}:
            raise ValueError(f"Invalid log format: {v}. Must be 'console' or 'json'")
        return v_lower

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.env == "production"

    @property
    def is_debug(self) -> bool:
        """Check if debug logging is enabled."""
        return self.log_level == "DEBUG"

    def resolved_tax_year(self, today: Optional[date] = None) -> int:
        """Return the configured tax year, or the calendar year of ``today``."""
        if self.tax_year is not None:
            return self.tax_year
        return (today or date.today()).year
