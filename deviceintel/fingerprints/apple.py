"""
Apple Resolution Resolver.

iOS Safari reports "iPhone" with no model, so the model is narrowed from
the CSS screen size and device pixel ratio. Each bucket lists the models
sharing that geometry, most common first.
"""

from typing import Optional

from ..models import FingerprintCandidateSet, ReferenceRecord
from ..normalize import is_number, round_ratio
from .common import build_candidate_set

# (width, height, ratio) -> models
APPLE_BUCKETS = [
    ((390, 844, 3), ("iPhone 12", "iPhone 13", "iPhone 13 Pro", "iPhone 14")),
    ((428, 926, 3), ("iPhone 12 Pro Max", "iPhone 13 Pro Max", "iPhone 14 Plus")),
    ((393, 852, 3), ("iPhone 14 Pro", "iPhone 15", "iPhone 15 Pro", "iPhone 16")),
    ((430, 932, 3), ("iPhone 14 Pro Max", "iPhone 15 Plus", "iPhone 15 Pro Max", "iPhone 16 Plus")),
    ((375, 812, 3), ("iPhone X", "iPhone XS", "iPhone 11 Pro")),
    ((414, 896, 3), ("iPhone XR", "iPhone 11", "iPhone XS Max", "iPhone 11 Pro Max")),
]


def _fallback_record(corpus_id: int, name: str, euicc: bool) -> ReferenceRecord:
    return ReferenceRecord(
        corpus_id=corpus_id,
        full_name=name,
        manufacturer="Apple Inc",
        device_type="Smartphone",
        operating_system="iOS",
        lte_support=True,
        five_g_support=not name.startswith(("iPhone X", "iPhone 11")),
        sim_slot_count=1,
        euicc=euicc,
    )


# Probed instead of the corpus when it is unavailable
APPLE_FALLBACK_RECORDS = tuple(
    _fallback_record(i, name, euicc=name != "iPhone X")
    for i, name in enumerate(
        dict.fromkeys(model for _, models in APPLE_BUCKETS for model in models),
        start=1,
    )
)


def refine_candidates(models, gpu_renderer: Optional[str] = None, hardware_concurrency: Optional[int] = None):
    """
    Try to narrow a bucket using GPU and core-count hints.

    WebKit reports "Apple GPU" for every generation and the core counts
    overlap across the bucket, so this never narrows and returns the
    models unchanged.
    """
    return tuple(models)


def resolve_apple(
    screen_width,
    screen_height,
    pixel_ratio,
    gpu_renderer: Optional[str] = None,
    hardware_concurrency: Optional[int] = None,
) -> Optional[FingerprintCandidateSet]:
    """
    Candidate iPhone models for a screen geometry, or None.

    The pixel ratio is rounded to the nearest integer; width and height must
    match a bucket exactly.
    """
    if not is_number(screen_width) or not is_number(screen_height):
        return None
    if not screen_width or not screen_height:
        return None
    ratio = round_ratio(pixel_ratio)
    if ratio is None:
        return None

    for (width, height, bucket_ratio), models in APPLE_BUCKETS:
        if screen_width == width and screen_height == height and ratio == bucket_ratio:
            if len(models) > 1:
                models = refine_candidates(models, gpu_renderer, hardware_concurrency)
            return build_candidate_set(models)
    return None
