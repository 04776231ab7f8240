"""
paybook_config -- single public entrypoint for payroll configuration.

Responsibility:
    Provides the only runtime access to tax-year rule sets and to the
    default chart of accounts.  YAML loading is internal; callers receive
    frozen dataclasses from ``paybook_config.schema``.

Architecture position:
    Configuration.  Sits above ``paybook_kernel`` and below
    ``paybook_modules``.  The kernel never imports from this package.

Invariants enforced:
    - The rule set for a pay date is selected by the pay date's calendar
      year; there is no implicit fallback to a neighbouring year.
    - Parsed rule sets are cached per process and immutable.

Failure modes:
    - ``TaxYearNotConfiguredError`` -- no ``sets/tax_years/<year>.yaml``.
    - ``ValueError`` / ``KeyError`` -- structural problems in a YAML file.

Audit relevance:
    Every first load of a tax year emits a ``tax_rules_loaded`` log entry
    with the file checksum, which is also stored on each payroll record.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from paybook_config.loader import load_chart_of_accounts_file, load_tax_year_file
from paybook_config.schema import (
    AccountDef,
    Bracket,
    CappedTax,
    ChartOfAccountsDef,
    FilingStatus,
    IncomeTaxSchedule,
    LocalTaxRules,
    TaxYearRules,
    ThresholdTax,
    UnemploymentRules,
    WageBaseTax,
)
from paybook_kernel.exceptions import TaxYearNotConfiguredError
from paybook_kernel.logging_config import get_logger

logger = get_logger("config")

_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"


def _tax_year_dir(config_dir: Path | None) -> Path:
    return (config_dir or _DEFAULT_CONFIG_DIR) / "tax_years"


def available_tax_years(config_dir: Path | None = None) -> list[int]:
    """Calendar years that have a rule set file, ascending."""
    return sorted(
        int(path.stem)
        for path in _tax_year_dir(config_dir).glob("*.yaml")
        if path.stem.isdigit()
    )


@lru_cache(maxsize=None)
def _load_tax_rules(tax_year: int, config_dir: Path | None) -> TaxYearRules:
    path = _tax_year_dir(config_dir) / f"{tax_year}.yaml"
    if not path.exists():
        raise TaxYearNotConfiguredError(tax_year, available_tax_years(config_dir))

    rules = load_tax_year_file(path)
    if rules.tax_year != tax_year:
        raise ValueError(
            f"{path.name} declares tax_year {rules.tax_year}, expected {tax_year}"
        )
    logger.info(
        "tax_rules_loaded",
        extra={"tax_year": tax_year, "checksum": rules.checksum},
    )
    return rules


def get_tax_rules(tax_year: int, config_dir: Path | None = None) -> TaxYearRules:
    """
    Return the rule set for one calendar year.

    Raises:
        TaxYearNotConfiguredError: no rule set exists for ``tax_year``.
    """
    return _load_tax_rules(int(tax_year), config_dir)


@lru_cache(maxsize=None)
def get_default_chart_of_accounts(config_dir: Path | None = None) -> ChartOfAccountsDef:
    """The chart of accounts seeded into new companies."""
    return load_chart_of_accounts_file(
        (config_dir or _DEFAULT_CONFIG_DIR) / "chart_of_accounts.yaml"
    )


def clear_config_cache() -> None:
    """Drop cached rule sets (tests that point at a temporary directory)."""
    _load_tax_rules.cache_clear()
    get_default_chart_of_accounts.cache_clear()


__all__ = [
    "AccountDef",
    "Bracket",
    "CappedTax",
    "ChartOfAccountsDef",
    "FilingStatus",
    "IncomeTaxSchedule",
    "LocalTaxRules",
    "TaxYearRules",
    "ThresholdTax",
    "UnemploymentRules",
    "WageBaseTax",
    "available_tax_years",
    "clear_config_cache",
    "get_default_chart_of_accounts",
    "get_tax_rules",
]
