"""Access policy: derive role-scoped filter locks from an explicit identity.

The policy is a flat decision table evaluated top to bottom, first match
wins:

1. a named per-user override from the :class:`OverrideTable` (extra rep
   visibility is granted to managers only);
2. role ``rep``: the rep field is locked to the caller's own rep name;
3. role ``manager``: the region field is locked to the default region;
4. anyone else (``admin``, ``marketing``): no locks.

Per-user overrides are configuration data (see ``config/access_policy.json``)
so locks can change without touching code.
"""

from __future__ import annotations

import enum
import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping

from commercial_intel.analytics.filters import FilterCriteria, apply_filters, matches
from commercial_intel.analytics.text import fold

logger = logging.getLogger(__name__)


class Role(str, enum.Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    REP = "rep"
    MARKETING = "marketing"

    @classmethod
    def parse(cls, value: str) -> Role:
        """Accept canonical names plus the legacy sheet spellings."""
        key = normalize_username(value)
        aliases = {"gerente": cls.MANAGER, "vendedor": cls.REP}
        if key in aliases:
            return aliases[key]
        return cls(key)


class LockMode(str, enum.Enum):
    HARD = "hard"  # user cannot edit the field
    SEED = "seed"  # initial value only


PAGES_BY_ROLE: dict[Role, frozenset[str]] = {
    Role.ADMIN: frozenset({"*"}),
    Role.MANAGER: frozenset({"*"}),
    Role.REP: frozenset({"*"}),
    Role.MARKETING: frozenset({"leads"}),
}


# ---------------------------------------------------------------------------
# Name normalization
# ---------------------------------------------------------------------------


def normalize_username(value: str | None) -> str:
    """Lowercase, strip diacritics, collapse whitespace: ``" João  P"`` → ``"joao p"``."""
    return fold(value)


def _compact(value: str) -> str:
    return re.sub(r"\s+", "", normalize_username(value))


def resolve_region_label(number: str, vocabulary: Iterable[str]) -> str:
    """Map a region number to the label actually used in the data.

    Vocabulary entries are compared compacted (no case, accents or spaces)
    against ``region<N>``, ``territory<N>``, ``regional<N>`` and ``regiao<N>``,
    and verbatim against ``N``.  Falls back to ``"Region {N}"``.
    """
    number = str(number).strip()
    patterns = {f"region{number}", f"territory{number}", f"regional{number}", f"regiao{number}"}
    for label in vocabulary:
        if not label:
            continue
        if label == number or _compact(label) in patterns:
            return label
    logger.debug("No region label for %s in vocabulary, using default", number)
    return f"Region {number}"


# ---------------------------------------------------------------------------
# Identity and override table
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, threaded explicitly into every call."""

    role: Role
    username: str
    display_name: str | None = None
    rep_name: str | None = None

    @property
    def normalized_username(self) -> str:
        return normalize_username(self.username)

    @property
    def rep_identity(self) -> str:
        """Name the caller appears under in the rep column."""
        return self.rep_name or self.username


@dataclass(frozen=True)
class UserOverride:
    """Locks configured for one named user."""

    regions: tuple[str, ...] = ()
    team: str | None = None
    exempt_from_rep_lock: bool = False
    extra_rep_visibility: str | None = None
    lock_mode: LockMode = LockMode.HARD

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> UserOverride:
        return cls(
            regions=tuple(str(r) for r in data.get("regions", ())),
            team=data.get("team") or None,
            exempt_from_rep_lock=bool(data.get("exempt_from_rep_lock", False)),
            extra_rep_visibility=data.get("extra_rep_visibility") or None,
            lock_mode=LockMode(data.get("lock_mode", LockMode.HARD.value)),
        )


@dataclass(frozen=True)
class OverrideTable:
    """Per-user overrides keyed by normalized username."""

    entries: Mapping[str, UserOverride] = field(default_factory=dict)
    default_manager_region: str = "3"
    manager_lock_mode: LockMode = LockMode.HARD

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> OverrideTable:
        entries = {
            normalize_username(name): UserOverride.from_dict(entry)
            for name, entry in (data.get("users") or {}).items()
        }
        return cls(
            entries=entries,
            default_manager_region=str(data.get("default_manager_region", "3")),
            manager_lock_mode=LockMode(data.get("manager_lock_mode", LockMode.HARD.value)),
        )

    @classmethod
    def load(cls, path: str | Path) -> OverrideTable:
        """Read the table from a JSON file."""
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
        table = cls.from_dict(data)
        logger.info("Loaded %d access overrides from %s", len(table.entries), path)
        return table

    def lookup(self, identity: Identity) -> UserOverride | None:
        return self.entries.get(identity.normalized_username)


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AccessPolicy:
    """Resolved locks for one identity.

    ``locks`` cannot be edited by the user; ``seeds`` are only the initial
    (and reset) values of the filter form.
    """

    identity: Identity
    locks: FilterCriteria = field(default_factory=FilterCriteria)
    seeds: FilterCriteria = field(default_factory=FilterCriteria)
    extra_rep_visibility: str | None = None

    @property
    def criteria(self) -> FilterCriteria:
        return self.seeds.merged(self.locks)

    def is_locked(self, field_name: str) -> bool:
        return self.locks.constrains(field_name)

    def for_fields(self, names: Iterable[str]) -> AccessPolicy:
        """The same policy with locks and seeds limited to fields a dataset has.

        Leads carry no region, so a manager's region lock must not empty them.
        """
        names = set(names)

        def keep(criteria: FilterCriteria) -> FilterCriteria:
            return FilterCriteria(
                criteria.start,
                criteria.end,
                {k: v for k, v in criteria.fields.items() if k in names},
            )

        return AccessPolicy(
            identity=self.identity,
            locks=keep(self.locks),
            seeds=keep(self.seeds),
            extra_rep_visibility=self.extra_rep_visibility if "rep" in names else None,
        )


def resolve_policy(
    identity: Identity,
    table: OverrideTable | None = None,
    vocabulary: Iterable[str] = (),
) -> AccessPolicy:
    """Evaluate the decision table for *identity*.

    Args:
        identity: The caller.
        table: Named overrides; an empty table when omitted.
        vocabulary: Region labels present in the data, used to resolve
            region numbers to labels.

    Returns:
        AccessPolicy with hard locks and seeds.
    """
    table = table or OverrideTable()
    vocabulary = list(vocabulary)
    locks: dict[str, list[str]] = {}
    seeds: dict[str, list[str]] = {}

    override = table.lookup(identity)
    if override is not None:
        target = locks if override.lock_mode is LockMode.HARD else seeds
        if override.regions:
            target["region"] = [resolve_region_label(n, vocabulary) for n in override.regions]
        if override.team:
            target["team"] = [override.team]
        if identity.role is Role.REP and not override.exempt_from_rep_lock:
            locks["rep"] = [identity.rep_identity]
        return AccessPolicy(
            identity=identity,
            locks=FilterCriteria.from_raw(locks),
            seeds=FilterCriteria.from_raw(seeds),
            extra_rep_visibility=(
                override.extra_rep_visibility if identity.role is Role.MANAGER else None
            ),
        )

    if identity.role is Role.REP:
        locks["rep"] = [identity.rep_identity]
    elif identity.role is Role.MANAGER:
        target = locks if table.manager_lock_mode is LockMode.HARD else seeds
        target["region"] = [resolve_region_label(table.default_manager_region, vocabulary)]

    return AccessPolicy(
        identity=identity,
        locks=FilterCriteria.from_raw(locks),
        seeds=FilterCriteria.from_raw(seeds),
    )


def resolve_initial_filters(
    identity: Identity,
    table: OverrideTable | None = None,
    vocabulary: Iterable[str] = (),
) -> FilterCriteria:
    """Filter state shown when a page first loads."""
    return resolve_policy(identity, table, vocabulary).criteria


def resolve_reset_filters(
    identity: Identity,
    table: OverrideTable | None = None,
    vocabulary: Iterable[str] = (),
) -> FilterCriteria:
    """Filter state after "clear filters", the same as the initial state."""
    return resolve_initial_filters(identity, table, vocabulary)


def effective_filters(policy: AccessPolicy, user_criteria: FilterCriteria | None) -> FilterCriteria:
    """User-chosen criteria with the policy's hard locks forced on top.

    Seeds only fill fields the user left unconstrained.
    """
    return policy.seeds.merged(user_criteria or FilterCriteria()).merged(policy.locks)


def scoped_records(
    records: Iterable[Any],
    policy: AccessPolicy,
    user_criteria: FilterCriteria | None = None,
) -> list:
    """Records visible to the policy's identity under *user_criteria*.

    When the policy grants extra rep visibility, records whose rep matches
    the granted name are added (union) as long as they satisfy every
    criterion other than the region.
    """
    criteria = effective_filters(policy, user_criteria)
    if not policy.extra_rep_visibility:
        return apply_filters(records, criteria)

    granted = normalize_username(policy.extra_rep_visibility)
    relaxed = criteria.without("region")
    return [
        r for r in records
        if matches(r, criteria)
        or (normalize_username(getattr(r, "rep", "")) == granted and matches(r, relaxed))
    ]


def rep_options(policy: AccessPolicy, all_reps: Iterable[str]) -> list[str]:
    """Rep choices offered in the filter form."""
    locked = policy.locks.constraint("rep")
    if policy.is_locked("rep"):
        return sorted(locked.values)
    return sorted(set(all_reps))


def can_access(identity: Identity, page: str) -> bool:
    allowed = PAGES_BY_ROLE.get(identity.role, frozenset())
    return "*" in allowed or page in allowed
