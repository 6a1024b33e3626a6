"""
customs_config.assembler -- composes YAML fragments into one PolicySetDefinition.

Fragment structure::

    sets/CM-GUCE-2024-v1/
    +-- root.yaml              # Identity, scope, lifecycle status, predecessor
    +-- routing_policy.yaml    # Thresholds, rates and flat fees
    +-- reference_rates.yaml   # Published exchange rates (optional)
    +-- APPROVED_FINGERPRINT   # Checksum pin (optional)

Invariants enforced:
    - ``root.yaml`` and ``routing_policy.yaml`` must exist.
    - A deterministic SHA-256 checksum is computed over all assembled data
      to support fingerprint pinning and replay of past valuations.

Failure modes:
    - ``AssemblyError`` -- required fragments missing or required fields
      missing/malformed.
    - ``yaml.YAMLError`` (propagated from loader) -- invalid YAML syntax.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from customs_config.lifecycle import ConfigStatus
from customs_config.loader import (
    compute_checksum,
    load_yaml_file,
    parse_reference_rates,
    parse_routing_policy,
    parse_scope,
)
from customs_config.schema import PolicySetDefinition
from customs_kernel.exceptions import CustomsKernelError


class AssemblyError(CustomsKernelError):
    """Error during fragment assembly.

    The first fatal issue aborts assembly; field-level errors are not
    collected.
    """

    code: str = "CONFIG_ASSEMBLY_ERROR"
    detail_fields = ("fragment_dir",)

    def __init__(self, message: str, fragment_dir: Path | None = None):
        self.fragment_dir = fragment_dir
        super().__init__(message)


def _require(path: Path, fragment_dir: Path) -> dict[str, Any]:
    if not path.exists():
        raise AssemblyError(f"{path.name} not found in {fragment_dir}", fragment_dir)
    return load_yaml_file(path)


def assemble_from_directory(fragment_dir: Path) -> PolicySetDefinition:
    """Compose the fragments of one set directory into a PolicySetDefinition.

    Args:
        fragment_dir: Path to the set directory (e.g.
            ``customs_config/sets/CM-GUCE-2024-v1/``).

    Raises:
        AssemblyError: If required fragments are missing or malformed.
    """
    if not fragment_dir.is_dir():
        raise AssemblyError(f"Fragment directory not found: {fragment_dir}", fragment_dir)

    root_data = _require(fragment_dir / "root.yaml", fragment_dir)
    policy_data = _require(fragment_dir / "routing_policy.yaml", fragment_dir)

    rates_path = fragment_dir / "reference_rates.yaml"
    rates_data = load_yaml_file(rates_path) if rates_path.exists() else {}

    try:
        config_id = root_data["config_id"]
        scope = parse_scope(root_data["scope"])
        status = ConfigStatus(root_data.get("status", "draft"))
        routing_policy = parse_routing_policy(policy_data["routing_policy"])
        reference_rates = parse_reference_rates(rates_data)
    except KeyError as e:
        raise AssemblyError(
            f"Missing required field {e} in {fragment_dir}", fragment_dir
        ) from e
    except ValueError as e:
        raise AssemblyError(f"Malformed policy set {fragment_dir}: {e}", fragment_dir) from e

    checksum = compute_checksum({
        "root": root_data,
        "routing_policy": policy_data,
        "reference_rates": rates_data,
    })

    return PolicySetDefinition(
        config_id=config_id,
        version=int(root_data.get("version", 1)),
        checksum=checksum,
        scope=scope,
        status=status,
        routing_policy=routing_policy,
        reference_rates=reference_rates,
        predecessor=root_data.get("predecessor"),
        description=root_data.get("description", ""),
    )
