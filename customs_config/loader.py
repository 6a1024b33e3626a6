"""
Policy Set Loader (``customs_config.loader``).

Responsibility
--------------
Loads individual YAML fragment files and parses them into the typed
``customs_config.schema`` definitions. Consumed by the assembler; the
runtime entry point is ``customs_config.get_active_policy()``.

Invariants enforced
-------------------
* Amounts and rates are parsed to ``Decimal`` through ``str``; a YAML
  float never reaches the kernel as a binary float.
* ``compute_checksum`` produces a deterministic SHA-256 hash for policy
  set identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Invalid date or number  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from customs_config.schema import PolicyScope, ReferenceRateDef, RoutingPolicyDef
from customs_kernel.domain.values import to_decimal


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_date(value: Any) -> date:
    """Parse a date from YAML (string or date object)."""
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ValueError(f"Cannot parse date from {value!r}")


def parse_decimal(value: Any, name: str) -> Decimal:
    try:
        return to_decimal(value)
    except ValueError as e:
        raise ValueError(f"{name}: {e}") from e


def parse_scope(data: dict[str, Any]) -> PolicyScope:
    """Parse a PolicyScope from a dict."""
    return PolicyScope(
        country=str(data["country"]).upper(),
        tenant=str(data.get("tenant", "*")),
        currency=str(data["currency"]).upper(),
        effective_from=parse_date(data["effective_from"]),
        effective_to=parse_date(data["effective_to"]) if data.get("effective_to") else None,
    )


def parse_routing_policy(data: dict[str, Any]) -> RoutingPolicyDef:
    """Parse the ``routing_policy`` block of routing_policy.yaml."""
    return RoutingPolicyDef(
        sgs_value_threshold=parse_decimal(data["sgs_value_threshold"], "sgs_value_threshold"),
        sgs_fee_rate=parse_decimal(data["sgs_fee_rate"], "sgs_fee_rate"),
        sgs_fee_minimum=parse_decimal(data["sgs_fee_minimum"], "sgs_fee_minimum"),
        customs_flat_fee=parse_decimal(data["customs_flat_fee"], "customs_flat_fee"),
        fiscal_stamp=parse_decimal(data["fiscal_stamp"], "fiscal_stamp"),
        bank_payment_threshold=parse_decimal(
            data["bank_payment_threshold"], "bank_payment_threshold"
        ),
    )


def parse_reference_rates(data: dict[str, Any]) -> tuple[ReferenceRateDef, ...]:
    """Parse the ``rates`` mapping of reference_rates.yaml, sorted by code."""
    rates = data.get("rates") or {}
    return tuple(
        ReferenceRateDef(
            currency=str(code).upper(),
            rate=parse_decimal(value, f"rates.{code}"),
        )
        for code, value in sorted(rates.items(), key=lambda kv: str(kv[0]))
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
