"""
Value types passed between the resolvers, the orchestrator and the
capability resolver.

Every type here is a frozen dataclass: signal snapshots and corpus records
are never mutated once built.
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class Tier(str, Enum):
    """Cascade tier that produced a resolution."""

    CLIENT_HINTS = "client_hints"
    ANDROID_FINGERPRINT = "android_fingerprint"
    APPLE_FINGERPRINT = "apple_fingerprint"
    ADVANCED_MATCH = "advanced_match"
    SIMPLE_SEARCH = "simple_search"
    NONE = "none"


class CapabilitySource(str, Enum):
    """Where an eSIM verdict came from."""

    REFERENCE = "reference"
    FALLBACK_RULE = "fallback_rule"
    NONE = "none"


class Trust(str, Enum):
    """How far downstream consumers should rely on a verdict."""

    HIGH = "high"
    REDUCED = "reduced"
    NONE = "none"


@dataclass(frozen=True)
class SignalSet:
    """Passive signals collected for one visit."""

    brand: Optional[str] = None
    model: Optional[str] = None
    screen_width: Optional[int] = None
    screen_height: Optional[int] = None
    pixel_ratio: Optional[float] = None
    gpu_renderer: Optional[str] = None
    gpu_vendor: Optional[str] = None
    hardware_concurrency: Optional[int] = None
    client_hints_model: Optional[str] = None
    client_hints_brand: Optional[str] = None
    # Carried through for export, not used by the cascade
    os: Optional[str] = None
    browser: Optional[str] = None
    client_hints_platform_version: Optional[str] = None
    client_hints_architecture: Optional[str] = None


@dataclass(frozen=True)
class ReferenceRecord:
    """One device row from the reference corpus."""

    full_name: str
    corpus_id: int = 0
    device_id: Optional[str] = None
    manufacturer: Optional[str] = None
    device_type: Optional[str] = None
    operating_system: Optional[str] = None
    bands: Optional[str] = None
    lte_support: bool = False
    five_g_support: bool = False
    sim_slot_count: Optional[int] = None
    euicc: bool = False

    @property
    def key(self) -> str:
        return self.full_name.casefold()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "standardisedFullName": self.full_name,
            "standardisedManufacturer": self.manufacturer,
            "deviceType": self.device_type,
            "operatingSystem": self.operating_system,
            "bands": self.bands,
            "lte": self.lte_support,
            "g5": self.five_g_support,
            "simslot": self.sim_slot_count,
            "euicc": self.euicc,
        }


@dataclass(frozen=True)
class FingerprintCandidateSet:
    """Candidate models sharing one screen/GPU signature, most common first."""

    models: Tuple[str, ...]
    is_unique: bool
    display_name: str


@dataclass(frozen=True)
class CandidateMatch:
    """A corpus hit for one fingerprint candidate."""

    model: str
    record: ReferenceRecord


@dataclass(frozen=True)
class ResolutionResult:
    matched_record: Optional[ReferenceRecord] = None
    confidence: int = 0
    deduced_model: Optional[str] = None
    fingerprint: Optional[FingerprintCandidateSet] = None
    tier_used: Tier = Tier.NONE
    candidate_matches: Tuple[CandidateMatch, ...] = field(default_factory=tuple)

    @property
    def is_ambiguous(self) -> bool:
        return self.fingerprint is not None and not self.fingerprint.is_unique


@dataclass(frozen=True)
class CapabilityVerdict:
    esim_compatible: Optional[bool] = None
    source: CapabilitySource = CapabilitySource.NONE
    is_resolution_based: bool = False
    trust: Trust = Trust.NONE

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["source"] = self.source.value
        data["trust"] = self.trust.value
        return data


NO_RESOLUTION = ResolutionResult()
