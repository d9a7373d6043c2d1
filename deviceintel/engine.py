"""Entry point tying the orchestrator and the capability resolver together."""

from typing import Any, Dict, Tuple

from .capability import CapabilityResolver
from .logger import get_logger
from .matcher import ReferenceMatcher
from .models import CapabilitySource, CapabilityVerdict, ResolutionResult, SignalSet
from .resolver import ResolutionOrchestrator


class DeviceResolutionEngine:
    """
    Resolve a device and its eSIM capability from one signal snapshot.

    Holds no per-call state; one instance can serve concurrent callers as
    long as the corpus behind the matcher is read-only.
    """

    def __init__(self, corpus, logger=None):
        self.logger = logger or get_logger()
        self.matcher = ReferenceMatcher(corpus, self.logger)
        self.orchestrator = ResolutionOrchestrator(self.matcher, logger=self.logger)
        self.capability = CapabilityResolver(self.logger)

    def resolve(self, signals: SignalSet) -> Tuple[ResolutionResult, CapabilityVerdict]:
        result = self.orchestrator.resolve(signals)
        verdict = self.capability.resolve(result)
        self.logger.info(
            "eSIM verdict",
            esim=verdict.esim_compatible,
            source=verdict.source.value,
            resolution_based=verdict.is_resolution_based,
        )
        return result, verdict


def to_record(result: ResolutionResult, verdict: CapabilityVerdict) -> Dict[str, Any]:
    """Flatten a resolution and verdict for the caller to persist."""
    fingerprint = result.fingerprint
    return {
        "gsmaData": result.matched_record.to_dict() if result.matched_record else None,
        "matchConfidence": result.confidence,
        "deducedModel": result.deduced_model,
        "tierUsed": result.tier_used.value,
        "fingerprint": {
            "models": list(fingerprint.models),
            "isUnique": fingerprint.is_unique,
            "displayName": fingerprint.display_name,
        } if fingerprint else None,
        "candidateMatches": [
            {"model": m.model, "standardisedFullName": m.record.full_name, "euicc": m.record.euicc}
            for m in result.candidate_matches
        ],
        "eSIMFallback": (
            verdict.esim_compatible if verdict.source == CapabilitySource.FALLBACK_RULE else None
        ),
        "eSIMCompatible": verdict.esim_compatible,
        "eSIMSource": verdict.source.value,
        "eSIMTrust": verdict.trust.value,
        "isResolutionBased": verdict.is_resolution_based,
    }
