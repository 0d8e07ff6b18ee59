"""Name, match-type and targeting-expression normalization.

Both sides of a join (report rows and inventory snapshots) must go through the
same helpers; resolution compares the normalized strings for exact equality.
"""

from __future__ import annotations

import json
import re
import unicodedata
from typing import TYPE_CHECKING

from adrecon.domain.model import MatchType

if TYPE_CHECKING:
    from collections.abc import Mapping

WILDCARD_EXPRESSION = "*"

_WHITESPACE = re.compile(r"\s+")
_CATEGORY_EXPRESSION = re.compile(r'category="(?P<name>[^"]*)"')


def normalize_name(value: str | None) -> str:
    """Case- and whitespace-folded form of a display name."""

    if value is None:
        return ""
    folded = unicodedata.normalize("NFKC", value).casefold().strip()
    return _WHITESPACE.sub(" ", folded)


def normalize_match_type(raw: str | None) -> MatchType:
    norm = (raw or "").strip().upper()
    if not norm:
        return MatchType.UNKNOWN
    if "EXACT" in norm:
        return MatchType.EXACT
    if "PHRASE" in norm:
        return MatchType.PHRASE
    if "BROAD" in norm:
        return MatchType.BROAD
    if "TARGET" in norm:
        return MatchType.TARGETING_EXPRESSION
    return MatchType.UNKNOWN


def effective_match_type(match_type_norm: str | None, match_type_raw: str | None) -> MatchType:
    """Prefer the normalized column, fall back to the raw report value."""

    normalized = normalize_match_type(match_type_norm)
    if normalized is not MatchType.UNKNOWN:
        return normalized
    return normalize_match_type(match_type_raw)


def infer_is_negative(match_type_raw: str | None) -> bool:
    return "negative" in (match_type_raw or "").casefold()


def is_wildcard_expression(expression_norm: str | None) -> bool:
    return (expression_norm or "").strip() == WILDCARD_EXPRESSION


def normalize_category_expression(
    expression_norm: str,
    category_id_by_name: Mapping[str, str],
) -> str:
    """Replace ``category="<name>"`` with ``category="<id>"`` for known categories.

    Snapshots store category targets by ID while reports show the category name.
    Unknown names are left untouched so they surface as unmapped targets.
    """

    def _substitute(match: re.Match[str]) -> str:
        name = normalize_name(match.group("name"))
        category_id = category_id_by_name.get(name)
        if category_id is None:
            return match.group(0)
        return f'category="{category_id}"'

    return _CATEGORY_EXPRESSION.sub(_substitute, expression_norm)


def build_target_key(
    *,
    campaign_name_norm: str,
    portfolio_name_norm: str | None,
    ad_group_name_norm: str | None,
    targeting_norm: str | None,
    match_type_norm: str | None,
    is_negative: bool,
) -> str:
    """Deterministic serialization of a row's full target-identifying tuple."""

    return json.dumps(
        {
            "campaign_name_norm": campaign_name_norm,
            "portfolio_name_norm": portfolio_name_norm,
            "ad_group_name_norm": ad_group_name_norm,
            "targeting_norm": targeting_norm,
            "match_type_norm": match_type_norm,
            "is_negative": is_negative,
        },
        separators=(",", ":"),
    )


__all__ = [
    "WILDCARD_EXPRESSION",
    "build_target_key",
    "effective_match_type",
    "infer_is_negative",
    "is_wildcard_expression",
    "normalize_category_expression",
    "normalize_match_type",
    "normalize_name",
]
