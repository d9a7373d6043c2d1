"""
Android GPU Resolver.

Chrome on Android reduces the user agent model to "K", but the unmasked
WebGL renderer plus the CSS screen size still separates most handsets.
"""

from typing import NamedTuple, Optional, Tuple

from ..models import FingerprintCandidateSet
from ..normalize import is_number, normalize_text
from .common import build_candidate_set, within_tolerance

# Browsers round CSS pixels differently across zoom/display settings
SIZE_TOLERANCE = 2


class GpuSignature(NamedTuple):
    gpu: str  # lowercase substring of the WebGL renderer
    width: int
    height: int
    display_name: str
    models: Tuple[str, ...]


# First match wins: keep more specific renderer substrings above shorter ones
ANDROID_SIGNATURES = [
    GpuSignature("adreno (tm) 710", 432, 960, "Motorola Edge 50 / Moto G84",
                 ("Motorola Edge 50", "Moto G84")),
    GpuSignature("adreno (tm) 750", 384, 832, "Samsung Galaxy S24 Ultra",
                 ("Samsung Galaxy S24 Ultra",)),
    GpuSignature("adreno (tm) 740", 360, 780, "Samsung Galaxy S23",
                 ("Samsung Galaxy S23",)),
    GpuSignature("adreno (tm) 740", 384, 832, "Samsung Galaxy S23+ / S23 Ultra",
                 ("Samsung Galaxy S23 Ultra", "Samsung Galaxy S23+")),
    GpuSignature("adreno (tm) 730", 360, 800, "Samsung Galaxy S22",
                 ("Samsung Galaxy S22",)),
    GpuSignature("adreno (tm) 619", 393, 873, "Xiaomi Redmi Note 12 / Redmi Note 11",
                 ("Xiaomi Redmi Note 12", "Xiaomi Redmi Note 11")),
    GpuSignature("mali-g715", 412, 915, "Google Pixel 8",
                 ("Google Pixel 8",)),
    GpuSignature("mali-g710", 412, 915, "Google Pixel 7",
                 ("Google Pixel 7",)),
    GpuSignature("mali-g710", 412, 892, "Google Pixel 7 Pro",
                 ("Google Pixel 7 Pro",)),
    GpuSignature("mali-g78", 412, 915, "Google Pixel 6",
                 ("Google Pixel 6",)),
    GpuSignature("mali-g78", 412, 892, "Google Pixel 6 Pro",
                 ("Google Pixel 6 Pro",)),
    GpuSignature("mali-g68", 384, 854, "Samsung Galaxy A54 / A34",
                 ("Samsung Galaxy A54", "Samsung Galaxy A34")),
]


def resolve_android(gpu_renderer: Optional[str], screen_width, screen_height=None) -> Optional[FingerprintCandidateSet]:
    """
    Candidate Android models for a GPU renderer and screen size, or None.

    Width (and height, when reported) must fall within SIZE_TOLERANCE
    pixels of the signature. Non-numeric sizes resolve nothing.
    """
    if not isinstance(gpu_renderer, str) or not is_number(screen_width) or not screen_width:
        return None
    if screen_height is not None and not is_number(screen_height):
        return None
    renderer = normalize_text(gpu_renderer)
    if not renderer:
        return None

    for sig in ANDROID_SIGNATURES:
        if sig.gpu not in renderer:
            continue
        if not within_tolerance(screen_width, sig.width, SIZE_TOLERANCE):
            continue
        if screen_height and not within_tolerance(screen_height, sig.height, SIZE_TOLERANCE):
            continue
        return build_candidate_set(sig.models, sig.display_name)
    return None
