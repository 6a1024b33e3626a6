"""
Policy Set Integrity -- checksum pinning for approved sets.

When a set directory contains an APPROVED_FINGERPRINT file, the assembled
checksum must match the pinned value. Editing a fee or threshold of an
approved set without re-approval is refused at load time.

The pin file is a single line: the SHA-256 hex string of the assembled
set. Without a pin file the check is skipped (draft workflow).
"""

from __future__ import annotations

from pathlib import Path

from customs_kernel.exceptions import CustomsKernelError

PINFILE_NAME = "APPROVED_FINGERPRINT"


class ConfigIntegrityError(CustomsKernelError):
    """Assembled policy set checksum does not match the approved pin.

    Attributes:
        config_id: The policy set identifier.
        expected: The pinned (approved) checksum.
        actual: The assembled checksum.
        pin_path: Path to the APPROVED_FINGERPRINT file.
    """

    code: str = "CONFIG_INTEGRITY_MISMATCH"
    detail_fields = ("config_id", "expected", "actual", "pin_path")

    def __init__(self, config_id: str, expected: str, actual: str, pin_path: Path):
        self.config_id = config_id
        self.expected = expected
        self.actual = actual
        self.pin_path = pin_path
        super().__init__(
            f"Policy set integrity check failed for '{config_id}': "
            f"pinned {expected[:16]}... != assembled {actual[:16]}... "
            f"(pin file: {pin_path})"
        )


def read_pinned_fingerprint(config_dir: Path) -> str | None:
    """Return the pinned checksum, or None if no pin file exists."""
    pin_path = config_dir / PINFILE_NAME
    if not pin_path.is_file():
        return None
    return pin_path.read_text().strip()


def verify_fingerprint_pin(config_id: str, checksum: str, config_dir: Path) -> None:
    """Verify that the assembled checksum matches the pin file.

    Raises:
        ConfigIntegrityError: If a pin exists and the checksum differs.
    """
    pinned = read_pinned_fingerprint(config_dir)
    if pinned is None:
        return

    if checksum != pinned:
        raise ConfigIntegrityError(
            config_id=config_id,
            expected=pinned,
            actual=checksum,
            pin_path=config_dir / PINFILE_NAME,
        )
