"""Shared helpers for the fingerprint resolvers."""

import re
from typing import Optional, Sequence, Tuple

from ..models import FingerprintCandidateSet

VARIANT_TAGS = ("Pro", "Max", "Plus", "Mini")

# "iPhone 13 Pro Max" -> generation "13"; "iPhone XS Max" -> generation "XS"
_GENERATION_RE = re.compile(r"iphone\s*(\d+|x[sr]?)\b", re.IGNORECASE)
_VARIANT_RE = re.compile(r"\b(pro|max|plus|mini)\b", re.IGNORECASE)

X_FAMILY_GENERATION = 10


def parse_generation(model: str) -> Optional[Tuple[int, str]]:
    """
    Numeric generation of an iPhone model name, with the label to print.

    The X family (X, XS, XR) counts as generation 10 and prints as "X".
    """
    match = _GENERATION_RE.search(model)
    if not match:
        return None
    token = match.group(1)
    if token.isdigit():
        return int(token), token
    return X_FAMILY_GENERATION, "X"


def parse_variant(model: str) -> str:
    tags = [t.capitalize() for t in _VARIANT_RE.findall(model)]
    return " ".join(tags)


def synthesize_label(models: Sequence[str], family: str = "iPhone") -> str:
    """
    Build a display label for a set of candidate models.

    One shared generation -> "iPhone 13 Pro Series"; a span ->
    "iPhone 12 / 14 Series". The variant appears only when every candidate
    has one: a shared variant prints alone, mixed variants are joined by "/".
    """
    generations = [g for g in (parse_generation(m) for m in models) if g]
    if not generations:
        return " / ".join(models)

    low = min(generations)
    high = max(generations)
    span = low[1] if low[0] == high[0] else f"{low[1]} / {high[1]}"

    variants = [parse_variant(m) for m in models]
    variant = ""
    if all(variants):
        distinct = list(dict.fromkeys(variants))
        variant = distinct[0] if len(distinct) == 1 else "/".join(distinct)

    parts = [family, span]
    if variant:
        parts.append(variant)
    parts.append("Series")
    return " ".join(parts)


def build_candidate_set(models: Sequence[str], display_name: Optional[str] = None) -> FingerprintCandidateSet:
    models = tuple(models)
    is_unique = len(models) == 1
    if is_unique:
        label = display_name or models[0]
    else:
        label = display_name or synthesize_label(models)
    return FingerprintCandidateSet(models=models, is_unique=is_unique, display_name=label)


def within_tolerance(actual, expected: int, tolerance: int) -> bool:
    return abs(actual - expected) <= tolerance
