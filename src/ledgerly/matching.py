"""Name-based entity resolution for categories, vendors and tax rates.

Pure functions over already-fetched, same-typed candidate lists. They never
pick between several plausible candidates: ambiguity is returned to the
caller, which turns it into a question for the user.
"""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")

TAX_RATE_EXACT_TOLERANCE = 0.01
TAX_RATE_SIMILAR_TOLERANCE = 0.5


class MatchStatus(str, Enum):
    """Classification of a lookup."""

    EXACT = "exact"
    AMBIGUOUS = "ambiguous"
    NOT_FOUND = "not_found"


@dataclass
class MatchResult(Generic[T]):
    """Exact match, or the candidates a human has to choose between."""

    exact_match: T | None = None
    similar_candidates: list[T] = field(default_factory=list)

    @property
    def status(self) -> MatchStatus:
        if self.exact_match is not None:
            return MatchStatus.EXACT
        if self.similar_candidates:
            return MatchStatus.AMBIGUOUS
        return MatchStatus.NOT_FOUND

    @property
    def is_exact(self) -> bool:
        return self.status is MatchStatus.EXACT

    @property
    def is_ambiguous(self) -> bool:
        return self.status is MatchStatus.AMBIGUOUS

    @property
    def is_not_found(self) -> bool:
        return self.status is MatchStatus.NOT_FOUND


def entity_name(entity: Any) -> str:
    """Return the display name of a record object or a raw row."""
    if isinstance(entity, Mapping):
        value = entity.get("name")
    else:
        value = getattr(entity, "name", None)
    return str(value or "")


def match_entity_by_name(candidates: Iterable[T], search_text: str) -> MatchResult[T]:
    """Classify how ``search_text`` identifies one of ``candidates``.

    A case-insensitive exact name match wins outright. Several records with
    the same name are a conflict and come back as candidates with no exact
    match. Only when nothing matches exactly are substring and prefix
    relationships (in either direction) considered.
    """
    search = search_text.strip().lower()
    pool = list(candidates)

    exact = [c for c in pool if entity_name(c).lower() == search]
    if len(exact) == 1:
        return MatchResult(exact_match=exact[0])
    if len(exact) > 1:
        return MatchResult(similar_candidates=exact)

    similar = []
    for candidate in pool:
        name = entity_name(candidate).lower()
        if (
            search in name
            or name in search
            or name.startswith(search)
            or search.startswith(name)
        ):
            similar.append(candidate)

    return MatchResult(similar_candidates=similar)


def _rate_value(rate: Any) -> float | None:
    raw = rate.get("rate") if isinstance(rate, Mapping) else getattr(rate, "rate", None)
    try:
        return float(raw)
    except (TypeError, ValueError):
        return None


def match_tax_rate(candidates: Iterable[T], percentage: float) -> MatchResult[T]:
    """Match a tax rate by percentage rather than by name.

    The first rate within 0.01 points is an exact match; otherwise every
    rate within 0.5 points is a candidate.
    """
    pool = list(candidates)

    for candidate in pool:
        value = _rate_value(candidate)
        if value is not None and abs(value - percentage) < TAX_RATE_EXACT_TOLERANCE:
            return MatchResult(exact_match=candidate)

    similar = [
        c for c in pool
        if (value := _rate_value(c)) is not None
        and abs(value - percentage) <= TAX_RATE_SIMILAR_TOLERANCE
    ]
    return MatchResult(similar_candidates=similar)


def format_candidates(
    candidates: Iterable[T], describe: Callable[[T], str] = entity_name
) -> str:
    """Render candidates as a bullet list for a disambiguation prompt."""
    return "\n".join(f"- {describe(c)}" for c in candidates)
