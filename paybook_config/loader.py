"""
Configuration loader (``paybook_config.loader``).

Responsibility
--------------
Loads YAML files and parses them into the frozen dataclasses of
``paybook_config.schema``.  Runtime callers go through
``paybook_config.get_tax_rules()`` and
``paybook_config.get_default_chart_of_accounts()`` instead of calling this
module directly.

Invariants enforced
-------------------
* Every amount and rate is parsed to ``Decimal`` through ``str`` so a YAML
  float never leaks binary error into the engine.
* Bracket tables must be strictly ascending and end with an open bracket.
* ``checksum`` is the SHA-256 of the source file bytes, so an audit can
  tie a payroll record back to the exact rule file that produced it.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Bad bracket ordering or unknown filing status  -> ``ValueError``.
"""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

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
from paybook_kernel.utils.hashing import sha256_hex

_VALID_ACCOUNT_TYPES = {"asset", "liability", "equity", "revenue", "expense"}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_decimal(value: Any) -> Decimal:
    """Parse a YAML scalar (str, int or float) to Decimal."""
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Cannot parse decimal from {value!r}")
    return Decimal(str(value))


def parse_optional_decimal(value: Any) -> Decimal | None:
    return None if value is None else parse_decimal(value)


def parse_brackets(data: list[dict[str, Any]]) -> tuple[Bracket, ...]:
    """Parse and check one bracket table."""
    brackets = tuple(
        Bracket(
            upper_bound=parse_optional_decimal(item.get("up_to")),
            rate=parse_decimal(item["rate"]),
        )
        for item in data
    )
    if not brackets:
        raise ValueError("Bracket table is empty")
    if brackets[-1].upper_bound is not None:
        raise ValueError("Last bracket must be open-ended (up_to: null)")

    previous = Decimal("0")
    for bracket in brackets[:-1]:
        if bracket.upper_bound is None or bracket.upper_bound <= previous:
            raise ValueError(
                f"Bracket bounds must be strictly ascending, got {bracket.upper_bound}"
            )
        previous = bracket.upper_bound
    return brackets


def parse_schedule(data: dict[str, Any]) -> IncomeTaxSchedule:
    """Parse an income tax schedule; every filing status must be present."""
    brackets = {
        FilingStatus(status): parse_brackets(table)
        for status, table in data["brackets"].items()
    }
    deductions = {
        FilingStatus(status): parse_decimal(amount)
        for status, amount in data["deductions"].items()
    }
    for status in FilingStatus:
        if status not in brackets or status not in deductions:
            raise ValueError(
                f"Schedule '{data['name']}' has no entry for filing status '{status.value}'"
            )
    return IncomeTaxSchedule(
        name=data["name"],
        brackets=brackets,
        deductions=deductions,
        allowance_value=parse_decimal(data["allowance_value"]),
    )


def parse_tax_year(data: dict[str, Any], checksum: str = "") -> TaxYearRules:
    """Parse a full tax-year rule set from a dict."""
    ss = data["social_security"]
    addl = data["additional_medicare"]
    sdi = data["sdi"]
    pfl = data["pfl"]
    unemployment = data["unemployment"]
    local = data["local"]

    return TaxYearRules(
        tax_year=int(data["tax_year"]),
        periods_per_year=int(data.get("periods_per_year", 52)),
        federal=parse_schedule(data["federal"]),
        state=parse_schedule(data["state"]),
        social_security=WageBaseTax(
            rate=parse_decimal(ss["rate"]),
            wage_base=parse_optional_decimal(ss.get("wage_base")),
        ),
        medicare=WageBaseTax(rate=parse_decimal(data["medicare"]["rate"])),
        additional_medicare=ThresholdTax(
            rate=parse_decimal(addl["rate"]),
            threshold=parse_decimal(addl["threshold"]),
        ),
        sdi=CappedTax(
            rate=parse_decimal(sdi["rate"]),
            per_period_max=parse_optional_decimal(sdi.get("per_period_max")),
            annual_max=parse_optional_decimal(sdi.get("annual_max")),
        ),
        pfl=CappedTax(
            rate=parse_decimal(pfl["rate"]),
            per_period_max=parse_optional_decimal(pfl.get("per_period_max")),
            annual_max=parse_optional_decimal(pfl.get("annual_max")),
        ),
        unemployment=UnemploymentRules(
            sui_wage_base=parse_decimal(unemployment["sui_wage_base"]),
            futa_wage_base=parse_decimal(unemployment["futa_wage_base"]),
            default_futa_rate=parse_decimal(unemployment["default_futa_rate"]),
        ),
        local=LocalTaxRules(
            nyc_rate=parse_decimal(local["nyc_rate"]),
            yonkers_resident_surcharge=parse_decimal(local["yonkers_resident_surcharge"]),
            yonkers_nonresident_rate=parse_decimal(local["yonkers_nonresident_rate"]),
        ),
        checksum=checksum,
    )


def load_tax_year_file(path: Path) -> TaxYearRules:
    """Load one ``sets/tax_years/<year>.yaml`` file."""
    checksum = sha256_hex(Path(path).read_bytes())
    return parse_tax_year(load_yaml_file(path), checksum=checksum)


def parse_account(data: dict[str, Any]) -> AccountDef:
    account_type = data["type"]
    if account_type not in _VALID_ACCOUNT_TYPES:
        raise ValueError(f"Unknown account type '{account_type}' for {data['code']}")
    return AccountDef(
        code=str(data["code"]),
        name=data["name"],
        account_type=account_type,
        subtype=data.get("subtype"),
        description=data.get("description"),
    )


def load_chart_of_accounts_file(path: Path) -> ChartOfAccountsDef:
    """Load a chart-of-accounts YAML file; codes must be unique."""
    checksum = sha256_hex(Path(path).read_bytes())
    accounts = tuple(parse_account(a) for a in load_yaml_file(path).get("accounts", []))
    codes = [a.code for a in accounts]
    duplicates = sorted({c for c in codes if codes.count(c) > 1})
    if duplicates:
        raise ValueError(f"Duplicate account codes: {duplicates}")
    return ChartOfAccountsDef(accounts=accounts, checksum=checksum)
