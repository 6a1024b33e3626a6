"""
customs_config -- single public entrypoint for valuation policy.

Responsibility:
    Provides the ONLY way to obtain a routing/fee policy at runtime through
    ``get_active_policy()``. Returns a ``PolicyPack`` holding the kernel
    ``RoutingPolicy`` and ``ReferenceRateTable`` for a country, tenant and
    date. YAML loading is internal and never exposed to callers.

Architecture position:
    Configuration -- YAML-driven policy sets. This package sits above
    ``customs_kernel`` and beside ``customs_engines``. Neither may import
    ``customs_config``; callers pass ``pack.routing_policy`` to
    ``evaluate()`` explicitly.

Invariants enforced:
    - Single entrypoint: all runtime policy flows through ``get_active_policy()``.
    - Validation: a set must pass ``validate_policy_set`` before use.
    - Fingerprint pinning: when an APPROVED_FINGERPRINT file exists, the
      assembled checksum must match the pinned value.
    - Deterministic assembly: the same YAML fragments always produce the
      same checksum.

Failure modes:
    - ``FileNotFoundError`` -- no policy set for the requested
      country / tenant / date.
    - ``AssemblyError`` -- a set directory is missing fragments or fields.
    - ``ValueError`` -- validation failures.
    - ``ConfigIntegrityError`` -- checksum mismatch against an approved pin.

Audit relevance:
    Every successful ``get_active_policy()`` call emits a
    ``CUSTOMS_CONFIG_TRACE`` log entry with the config_id, version,
    checksum and scope.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path

from customs_config.assembler import AssemblyError, assemble_from_directory
from customs_config.bridges import build_policy_pack
from customs_config.integrity import ConfigIntegrityError, verify_fingerprint_pin
from customs_config.lifecycle import ConfigStatus
from customs_config.schema import PolicyPack, PolicyScope, PolicySetDefinition
from customs_config.validator import validate_policy_set
from customs_kernel.logging_config import get_logger

_logger = get_logger("config")

_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"

__all__ = [
    "AssemblyError",
    "ConfigIntegrityError",
    "ConfigStatus",
    "PolicyPack",
    "PolicyScope",
    "get_active_policy",
]


def get_active_policy(
    country: str,
    as_of_date: date,
    tenant: str = "*",
    config_dir: Path | None = None,
) -> PolicyPack:
    """The ONLY public policy entrypoint.

    Args:
        country: ISO 3166-1 alpha-2 country code (e.g. "CM").
        as_of_date: Date for effective date filtering.
        tenant: Tenant identifier; sets scoped to "*" match every tenant.
        config_dir: Override path to the policy sets directory.
            Defaults to customs_config/sets/.

    Returns:
        PolicyPack for the matching set.

    Raises:
        FileNotFoundError: If no matching policy set is found.
        AssemblyError: If a set directory is malformed.
        ValueError: If the matching set fails validation.
        ConfigIntegrityError: If APPROVED_FINGERPRINT exists and does
            not match the assembled checksum.
    """
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR

    policy_set, fragment_dir = _find_matching_set(
        sets_dir, country.upper(), tenant, as_of_date
    )

    validation = validate_policy_set(policy_set)
    for warning in validation.warnings:
        _logger.warning("policy_set_warning", extra={
            "config_set_id": policy_set.config_id,
            "warning": warning,
        })
    if not validation.is_valid:
        raise ValueError(
            f"Policy set {policy_set.config_id} failed validation:\n"
            + "\n".join(f"  - {e}" for e in validation.errors)
        )

    verify_fingerprint_pin(
        config_id=policy_set.config_id,
        checksum=policy_set.checksum,
        config_dir=fragment_dir,
    )

    pack = build_policy_pack(policy_set)

    _logger.info(
        "CUSTOMS_CONFIG_TRACE",
        extra={
            "trace_type": "CUSTOMS_CONFIG_TRACE",
            "config_set_id": pack.config_id,
            "config_set_version": pack.version,
            "checksum": pack.checksum,
            "scope_country": pack.scope.country,
            "scope_tenant": pack.scope.tenant,
            "scope_currency": pack.scope.currency,
            "reference_rate_count": len(pack.reference_rates.rates),
        },
    )

    return pack


def _find_matching_set(
    sets_dir: Path, country: str, tenant: str, as_of_date: date
) -> tuple[PolicySetDefinition, Path]:
    """Find the policy set for a country, tenant and date.

    Scans all subdirectories of *sets_dir* holding a ``root.yaml``,
    assembles each, and keeps those whose scope covers the request.
    Draft and reviewed sets are never selected.
    A tenant-specific set beats a "*" set; among equals, PUBLISHED
    beats other statuses, then the highest version wins.

    Raises:
        FileNotFoundError: If ``sets_dir`` does not exist or nothing matches.
    """
    if not sets_dir.is_dir():
        raise FileNotFoundError(f"Policy sets directory not found: {sets_dir}")

    candidates: list[tuple[PolicySetDefinition, Path]] = []
    for subdir in sorted(sets_dir.iterdir()):
        if not subdir.is_dir() or not (subdir / "root.yaml").exists():
            continue
        policy_set = assemble_from_directory(subdir)
        if not policy_set.status.is_selectable:
            _logger.debug("policy_set_skipped", extra={
                "config_set_id": policy_set.config_id,
                "status": policy_set.status.value,
            })
            continue
        if policy_set.scope.covers(country, tenant, as_of_date):
            candidates.append((policy_set, subdir))

    if not candidates:
        raise FileNotFoundError(
            f"No policy set found for country='{country}' tenant='{tenant}' "
            f"as_of_date={as_of_date} in {sets_dir}"
        )

    return max(
        candidates,
        key=lambda pair: (
            pair[0].scope.tenant == tenant,
            pair[0].status == ConfigStatus.PUBLISHED,
            pair[0].version,
        ),
    )
