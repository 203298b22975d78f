"""Roster configuration: the immutable value every extraction component takes."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.config import Settings


@dataclass(frozen=True)
class Roster:
    """Canonical people, the operator, and rooms to ignore.

    ``members`` order is significant: when a name fuzzily matches several
    members, the first one wins.  ``member_ids`` maps an external Chatwork
    account id to a canonical member name.
    """

    members: tuple[str, ...]
    operator: str
    member_ids: Mapping[str, str] = field(default_factory=dict)
    excluded_rooms: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # Blank entries would be a substring of every name.
        object.__setattr__(self, "members", _clean(self.members))
        object.__setattr__(self, "excluded_rooms", _clean(self.excluded_rooms))
        object.__setattr__(
            self,
            "member_ids",
            {k.strip(): v.strip() for k, v in self.member_ids.items() if k.strip() and v.strip()},
        )

    @property
    def account_ids(self) -> dict[str, str]:
        """Inverse of ``member_ids``: canonical name -> account id."""
        return {name: account_id for account_id, name in self.member_ids.items()}


def _clean(values: Iterable[str] | None) -> tuple[str, ...]:
    return tuple(v.strip() for v in values or () if v and v.strip())


def roster_from_settings(settings: Settings) -> Roster:
    """Build a Roster from application settings.

    When no operator name is configured, the first team member is treated
    as the operator.
    """
    members = _clean(settings.team_members)
    operator = settings.operator_name.strip() or (members[0] if members else "")
    return Roster(
        members=members,
        operator=operator,
        member_ids=dict(settings.member_ids),
        excluded_rooms=tuple(settings.excluded_rooms),
    )
