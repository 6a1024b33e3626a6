"""
Policy set lifecycle status.

A set moves draft -> reviewed -> approved -> published and is later
superseded by a newer published set. Only sets that have been approved
may price a declaration; drafts and sets still under review sit on disk
without ever being selected. Superseded sets stay selectable so that past
declarations can be re-evaluated under the policy in force at the time.
"""

from enum import Enum, unique


@unique
class ConfigStatus(str, Enum):
    """Lifecycle status for a policy set."""

    DRAFT = "draft"
    REVIEWED = "reviewed"
    APPROVED = "approved"
    PUBLISHED = "published"
    SUPERSEDED = "superseded"

    @property
    def is_selectable(self) -> bool:
        """True when a set in this status may be returned to callers."""
        return self in _SELECTABLE


_SELECTABLE = frozenset({
    ConfigStatus.APPROVED,
    ConfigStatus.PUBLISHED,
    ConfigStatus.SUPERSEDED,
})
