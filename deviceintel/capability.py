"""
Capability Resolver: eSIM verdict for a resolution result.

Responsibilities:
- Read the eUICC flag of the matched corpus record(s).
- Reconcile flags across the candidates of an ambiguous Apple bucket.
- Fall back to the release-generation rule when the corpus cannot answer.

Non-Responsibilities:
- No corpus queries.
- No change to the resolution result.

Invariant:
An ambiguous identity is always reported with is_resolution_based=True.
"""

import re
from typing import Iterable, List, Optional

from .logger import get_logger
from .models import CapabilitySource, CapabilityVerdict, ResolutionResult, Tier, Trust
from .normalize import contains

_XS_XR_RE = re.compile(r"\bx\s*[sr]\b", re.IGNORECASE)
_X_RE = re.compile(r"iphone\s*x\b", re.IGNORECASE)


def is_esim_capable_model(model: str) -> bool:
    """
    Release-generation rule for one iPhone model name.

    Only the original X is rejected. XS/XR, every numbered model and names
    the rule cannot parse count as capable. Lenient: numbered models before
    11 (e.g. "iPhone 8") have no eSIM yet still pass. Rule verdicts carry
    reduced trust.
    """
    if _XS_XR_RE.search(model):
        return True
    return not _X_RE.search(model)


def evaluate_candidates(models: Iterable[str]) -> bool:
    """True only if every candidate passes the rule on its own."""
    return all(is_esim_capable_model(m) for m in models)


class CapabilityResolver:

    def __init__(self, logger=None):
        self.logger = logger or get_logger()

    def resolve(self, result: ResolutionResult) -> CapabilityVerdict:
        ambiguous = result.is_ambiguous

        if result.tier_used == Tier.APPLE_FINGERPRINT and ambiguous and result.candidate_matches:
            flags = {m.record.euicc for m in result.candidate_matches}
            if len(flags) == 1:
                all_matched = len(result.candidate_matches) == len(result.fingerprint.models)
                return CapabilityVerdict(
                    esim_compatible=flags.pop(),
                    source=CapabilitySource.REFERENCE,
                    is_resolution_based=True,
                    trust=Trust.HIGH if all_matched else Trust.REDUCED,
                )
            self.logger.info(
                "Candidate records disagree on eSIM, applying fallback rule",
                candidates=[m.record.full_name for m in result.candidate_matches],
            )
            return self._rule_verdict(result.fingerprint.models, ambiguous)

        if result.matched_record is not None:
            return CapabilityVerdict(
                esim_compatible=result.matched_record.euicc,
                source=CapabilitySource.REFERENCE,
                is_resolution_based=ambiguous,
                trust=Trust.REDUCED if ambiguous else Trust.HIGH,
            )

        candidates = self._rule_candidates(result)
        if candidates:
            return self._rule_verdict(candidates, ambiguous)

        return CapabilityVerdict(is_resolution_based=ambiguous)

    def _rule_candidates(self, result: ResolutionResult) -> Optional[List[str]]:
        if result.tier_used == Tier.APPLE_FINGERPRINT and result.fingerprint is not None:
            return list(result.fingerprint.models)
        if contains(result.deduced_model, "iphone"):
            return [result.deduced_model]
        return None

    def _rule_verdict(self, models, ambiguous: bool) -> CapabilityVerdict:
        verdict = evaluate_candidates(models)
        self.logger.info("Applied eSIM fallback rule", candidates=list(models), esim=verdict)
        return CapabilityVerdict(
            esim_compatible=verdict,
            source=CapabilitySource.FALLBACK_RULE,
            is_resolution_based=ambiguous,
            trust=Trust.REDUCED,
        )
