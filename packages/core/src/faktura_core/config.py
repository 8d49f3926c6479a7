"""Configuration system for faktura-core.

This module provides Pydantic Settings-based configuration with environment
variable support and the statutory defaults for the statistics engine.

Usage:
    from faktura_core.config import FakturaConfig

    # Load from environment variables and .env file
    config = FakturaConfig()

    # Statutory thresholds
    print(config.thresholds.kleinunternehmer_current_year)

    # Income tax table for a year (built-in or from FAKTURA_TAX_TABLES_FILE)
    table = config.tax.income_tax_table_for(2025)
"""

import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import Optional

import structlog
from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError
from .tax_standards import (
    DEFAULT_INCOME_TAX_TABLE,
    DEFAULT_VAT_RATE,
    KLEINUNTERNEHMER_CURRENT_YEAR_LIMIT,
    KLEINUNTERNEHMER_PREVIOUS_YEAR_LIMIT,
    ChurchTaxRates,
    IncomeTaxTable,
    SolidarityTable,
)

logger = structlog.get_logger()


def load_tax_tables(path: Path) -> dict[int, IncomeTaxTable]:
    """Load income tax tables from a JSON file.

    The file maps tax years to table fields, e.g.::

        {"2026": {"basic_allowance": 12348, "progression_end": 69878}}

    Fields left out fall back to the built-in defaults.

    Args:
        path: Path to the JSON file

    Returns:
        Tables keyed by tax year

    Raises:
        ConfigurationError: If the file is missing, not valid JSON, or an
            entry is not a valid table.
    """
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigurationError(
            f"Tax table file not found: {path}",
            config_key="tables_file",
            expected="Existing JSON file",
            actual=str(path),
        ) from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Tax table file is not valid JSON: {path}",
            config_key="tables_file",
            expected="JSON object keyed by tax year",
            details={"error": str(e)},
        ) from e

    if not isinstance(raw, dict):
        raise ConfigurationError(
            "Tax table file must contain a JSON object",
            config_key="tables_file",
            expected="JSON object keyed by tax year",
            actual=type(raw).__name__,
        )

    tables: dict[int, IncomeTaxTable] = {}
    for key, entry in raw.items():
        try:
            year = int(key)
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid tax year key: {key!r}",
                config_key="tables_file",
                expected="Four-digit year",
                actual=key,
            ) from e
        if not isinstance(entry, dict):
            raise ConfigurationError(
                f"Tax table for {year} must be an object",
                config_key=f"tables_file[{year}]",
                actual=type(entry).__name__,
            )
        try:
            tables[year] = IncomeTaxTable(**{**entry, "year": year})
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid tax table for {year}",
                config_key=f"tables_file[{year}]",
                details={"errors": e.errors(include_url=False)},
            ) from e

    logger.info("tax_tables_loaded", path=str(path), years=sorted(tables))
    return tables


class TaxConfig(BaseSettings):
    """Income tax, solidarity surcharge and church tax configuration.

    Environment Variables:
        FAKTURA_TAX_TABLES_FILE: JSON file with income tax tables per year
        FAKTURA_TAX_SOLIDARITY: JSON object overriding solidarity thresholds
        FAKTURA_TAX_CHURCH: JSON object overriding church tax rates
    """

    model_config = SettingsConfigDict(
        env_prefix="FAKTURA_TAX_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    tables_file: Optional[Path] = Field(
        default=None,
        description="JSON file with income tax tables keyed by year",
    )
    income_tax_tables: dict[int, IncomeTaxTable] = Field(
        default_factory=lambda: {DEFAULT_INCOME_TAX_TABLE.year: DEFAULT_INCOME_TAX_TABLE},
        description="Income tax tables keyed by tax year",
    )
    solidarity: SolidarityTable = Field(default_factory=SolidarityTable)
    church: ChurchTaxRates = Field(default_factory=ChurchTaxRates)

    @model_validator(mode="after")
    def merge_tables_file(self):
        """Overlay tables from the configured file onto the built-in ones."""
        if self.tables_file is not None:
            self.income_tax_tables = {
                **self.income_tax_tables,
                **load_tax_tables(self.tables_file),
            }
        return self

    def income_tax_table_for(self, year: int) -> IncomeTaxTable:
        """Table for a tax year.

        Uses the latest table at or before ``year``; years older than every
        configured table use the earliest one.
        """
        years = sorted(self.income_tax_tables)
        if not years:
            return DEFAULT_INCOME_TAX_TABLE
        eligible = [y for y in years if y <= year]
        chosen = eligible[-1] if eligible else years[0]
        return self.income_tax_tables[chosen]


class ThresholdConfig(BaseSettings):
    """Statutory VAT thresholds.

    Environment Variables:
        FAKTURA_THRESHOLDS_KLEINUNTERNEHMER_PREVIOUS_YEAR: Prior-year limit (EUR)
        FAKTURA_THRESHOLDS_KLEINUNTERNEHMER_CURRENT_YEAR: Current-year limit (EUR)
        FAKTURA_THRESHOLDS_DEFAULT_VAT_RATE: Statutory VAT rate in percent
    """

    model_config = SettingsConfigDict(
        env_prefix="FAKTURA_THRESHOLDS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    kleinunternehmer_previous_year: Decimal = Field(
        default=KLEINUNTERNEHMER_PREVIOUS_YEAR_LIMIT,
        gt=0,
        description="Revenue limit for the previous calendar year",
    )
    kleinunternehmer_current_year: Decimal = Field(
        default=KLEINUNTERNEHMER_CURRENT_YEAR_LIMIT,
        gt=0,
        description="Revenue limit for the current calendar year",
    )
    default_vat_rate: Decimal = Field(
        default=DEFAULT_VAT_RATE,
        ge=0,
        le=100,
        description="VAT rate applied when the company has no VAT setup",
    )


class MetricsConfig(BaseSettings):
    """Aggregation and projection settings.

    Environment Variables:
        FAKTURA_METRICS_BILLING_CUTOFF_DAY: Invoices before this day bill the prior month
        FAKTURA_METRICS_TOP_CLIENTS_LIMIT: Number of clients in the top list
        FAKTURA_METRICS_BASELINE_WINDOW_MONTHS: Trailing months in the median baseline
        FAKTURA_METRICS_DAYS_PER_YEAR: Days used to annualize run-rates
    """

    model_config = SettingsConfigDict(
        env_prefix="FAKTURA_METRICS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    billing_cutoff_day: int = Field(
        default=20,
        ge=1,
        le=31,
        description="Invoices dated before this day of month bill the previous month",
    )
    top_clients_limit: int = Field(
        default=5,
        ge=1,
        description="Number of clients in the top-clients list",
    )
    baseline_window_months: int = Field(
        default=3,
        ge=1,
        le=12,
        description="Trailing smoothed months in the projection baseline median",
    )
    days_per_year: int = Field(
        default=365,
        ge=365,
        le=366,
        description="Days used to annualize day-based run-rates",
    )


class FakturaConfig(BaseSettings):
    """Root configuration for faktura-core.

    Environment Variables:
        FAKTURA_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)

    Example:
        config = FakturaConfig(metrics=MetricsConfig(billing_cutoff_day=15))
    """

    model_config = SettingsConfigDict(
        env_prefix="FAKTURA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )

    tax: TaxConfig = Field(default_factory=TaxConfig)
    thresholds: ThresholdConfig = Field(default_factory=ThresholdConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper().strip()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of: {valid_levels}")
        return v_upper

    def income_tax_table_for(self, year: int) -> IncomeTaxTable:
        """Income tax table for a tax year."""
        return self.tax.income_tax_table_for(year)


# Built-in defaults for callers that pass no config. Constructed without
# settings sources, so neither FAKTURA_* variables nor .env are read.
DEFAULT_CONFIG = FakturaConfig.model_construct(
    tax=TaxConfig.model_construct(),
    thresholds=ThresholdConfig.model_construct(),
    metrics=MetricsConfig.model_construct(),
)


def configure_logging(config: Optional[FakturaConfig] = None) -> None:
    """Filter structlog output at the configured log level."""
    config = config or FakturaConfig()
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(config.log_level)
        ),
    )


__all__ = [
    "DEFAULT_CONFIG",
    "FakturaConfig",
    "TaxConfig",
    "ThresholdConfig",
    "MetricsConfig",
    "load_tax_tables",
    "configure_logging",
]
