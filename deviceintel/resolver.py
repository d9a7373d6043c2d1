"""
Resolution Orchestrator.

Responsibilities:
- Run the tiers in priority order.
- Stop at the first tier that returns a result.
- Report the outcome (log + metrics).

Non-Responsibilities:
- No corpus access of its own.
- No eSIM decisions.
- No persistence.

Invariant:
Given the same signals and the same corpus, the result is identical.
"""

from typing import List, Optional

from .logger import get_logger
from .matcher import ReferenceMatcher
from .models import NO_RESOLUTION, ResolutionResult, SignalSet, Tier
from .tiers import ResolutionTier, default_tiers


class ResolutionOrchestrator:

    def __init__(self, matcher: ReferenceMatcher, tiers: Optional[List[ResolutionTier]] = None, logger=None):
        self.matcher = matcher
        self.logger = logger or get_logger()
        self.tiers = tiers if tiers is not None else default_tiers(matcher, self.logger)

    def resolve(self, signals: SignalSet) -> ResolutionResult:
        for tier in self.tiers:
            result = tier.attempt(signals)
            if result is None:
                continue
            matched = result.matched_record is not None
            self.logger.record_resolution(result.tier_used.value, matched)
            self.logger.info(
                f"Resolved via {result.tier_used.value}",
                result=result.matched_record.full_name if matched else None,
                deduced_model=result.deduced_model,
                confidence=result.confidence,
            )
            return result

        self.logger.record_resolution(Tier.NONE.value, False)
        self.logger.info("No tier produced a match", brand=signals.brand, model=signals.model)
        return NO_RESOLUTION
