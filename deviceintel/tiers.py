"""
Resolution tiers.

Each tier is one strategy of the cascade: attempt() either returns a
definitive ResolutionResult or None to let the next tier run. Confidence
values are fixed per tier and outcome.
"""

from typing import List, Optional

from .corpus import InMemoryCorpus
from .fingerprints.android import resolve_android
from .fingerprints.apple import APPLE_FALLBACK_RECORDS, resolve_apple
from .logger import get_logger
from .matcher import ReferenceMatcher
from .models import CandidateMatch, ResolutionResult, SignalSet, Tier
from .normalize import clean, contains, is_masked_model

UNIQUE_FINGERPRINT_CONFIDENCE = 100
AMBIGUOUS_FINGERPRINT_CONFIDENCE = 50


def _unmasked_model(signals: SignalSet) -> Optional[str]:
    return None if is_masked_model(signals.model) else clean(signals.model)


class ResolutionTier:
    tier = Tier.NONE

    def __init__(self, matcher: ReferenceMatcher, logger=None):
        self.matcher = matcher
        self.logger = logger or get_logger()

    def attempt(self, signals: SignalSet) -> Optional[ResolutionResult]:
        raise NotImplementedError

    def _result(self, record, confidence: int, deduced_model=None, **kwargs) -> ResolutionResult:
        return ResolutionResult(
            matched_record=record,
            confidence=confidence,
            deduced_model=deduced_model,
            tier_used=self.tier,
            **kwargs,
        )


class ClientHintsTier(ResolutionTier):
    """High-entropy client hints usually carry the real model even when the UA is reduced."""

    tier = Tier.CLIENT_HINTS
    BRAND_MODEL_CONFIDENCE = 90
    MODEL_ONLY_CONFIDENCE = 85

    def attempt(self, signals: SignalSet) -> Optional[ResolutionResult]:
        model = clean(signals.client_hints_model)
        if not model:
            return None
        brand = clean(signals.client_hints_brand)

        if brand:
            record = self.matcher.search_by_name(f"{brand} {model}")
            if record:
                return self._result(record, self.BRAND_MODEL_CONFIDENCE, model)

        record = self.matcher.search_by_name(model)
        if record:
            return self._result(record, self.MODEL_ONLY_CONFIDENCE, model)
        return None


class AndroidFingerprintTier(ResolutionTier):
    tier = Tier.ANDROID_FINGERPRINT

    def applies(self, signals: SignalSet) -> bool:
        identity_missing = not clean(signals.brand) or is_masked_model(signals.model)
        return identity_missing and bool(clean(signals.gpu_renderer)) and bool(signals.screen_width)

    def attempt(self, signals: SignalSet) -> Optional[ResolutionResult]:
        if not self.applies(signals):
            return None
        fingerprint = resolve_android(signals.gpu_renderer, signals.screen_width, signals.screen_height)
        if fingerprint is None:
            self.logger.debug(
                "No Android GPU fingerprint",
                gpu=signals.gpu_renderer,
                width=signals.screen_width,
                height=signals.screen_height,
            )
            return None

        confidence = (
            UNIQUE_FINGERPRINT_CONFIDENCE if fingerprint.is_unique else AMBIGUOUS_FINGERPRINT_CONFIDENCE
        )
        for model in fingerprint.models:
            record = self.matcher.search_by_name(model)
            if record:
                return self._result(
                    record,
                    confidence,
                    model,
                    fingerprint=fingerprint,
                    candidate_matches=(CandidateMatch(model, record),),
                )

        self.logger.info("Android fingerprint without corpus match", fingerprint=fingerprint.display_name)
        deduced = fingerprint.models[0] if fingerprint.is_unique else fingerprint.display_name
        return self._result(None, AMBIGUOUS_FINGERPRINT_CONFIDENCE, deduced, fingerprint=fingerprint)


class AppleFingerprintTier(ResolutionTier):
    tier = Tier.APPLE_FINGERPRINT

    def __init__(self, matcher: ReferenceMatcher, logger=None, fallback_matcher: Optional[ReferenceMatcher] = None):
        super().__init__(matcher, logger)
        self.fallback_matcher = fallback_matcher or ReferenceMatcher(
            InMemoryCorpus(APPLE_FALLBACK_RECORDS), self.logger
        )

    def applies(self, signals: SignalSet) -> bool:
        return contains(signals.brand, "apple") or contains(signals.model, "iphone")

    def attempt(self, signals: SignalSet) -> Optional[ResolutionResult]:
        if not self.applies(signals):
            return None
        fingerprint = resolve_apple(
            signals.screen_width,
            signals.screen_height,
            signals.pixel_ratio,
            signals.gpu_renderer,
            signals.hardware_concurrency,
        )
        if fingerprint is None:
            self.logger.info(
                "Could not deduce iPhone model from resolution",
                width=signals.screen_width,
                height=signals.screen_height,
                ratio=signals.pixel_ratio,
            )
            return None

        matcher = self.matcher if self.matcher.available else self.fallback_matcher
        # Every candidate is probed so the capability check can compare them
        matches: List[CandidateMatch] = []
        for model in fingerprint.models:
            record = matcher.search_by_name(model)
            if record:
                matches.append(CandidateMatch(model, record))

        confidence = (
            UNIQUE_FINGERPRINT_CONFIDENCE if fingerprint.is_unique else AMBIGUOUS_FINGERPRINT_CONFIDENCE
        )
        deduced = fingerprint.models[0] if fingerprint.is_unique else fingerprint.display_name
        return self._result(
            matches[0].record if matches else None,
            confidence,
            deduced,
            fingerprint=fingerprint,
            candidate_matches=tuple(matches),
        )


class AdvancedMatchTier(ResolutionTier):
    tier = Tier.ADVANCED_MATCH
    CONFIDENCE = 85

    def attempt(self, signals: SignalSet) -> Optional[ResolutionResult]:
        brand = clean(signals.brand)
        model = _unmasked_model(signals)
        if not brand and not model:
            return None
        record = self.matcher.advanced_match(
            brand=brand,
            model=model,
            screen_width=signals.screen_width,
            screen_height=signals.screen_height,
            gpu_renderer=signals.gpu_renderer,
        )
        if record:
            return self._result(record, self.CONFIDENCE, model)
        return None


class SimpleSearchTier(ResolutionTier):
    tier = Tier.SIMPLE_SEARCH
    CONFIDENCE = 70
    MODEL_ONLY_CONFIDENCE = 50

    def attempt(self, signals: SignalSet) -> Optional[ResolutionResult]:
        brand = clean(signals.brand)
        model = _unmasked_model(signals)
        if brand and model:
            term = f"{brand} {model}"
        else:
            term = model or brand
        if not term:
            return None

        record = self.matcher.search_by_name(term)
        if record:
            return self._result(record, self.CONFIDENCE, model)

        if model and term != model:
            record = self.matcher.search_by_name(model)
            if record:
                return self._result(record, self.MODEL_ONLY_CONFIDENCE, model)
        return None


def default_tiers(matcher: ReferenceMatcher, logger=None) -> List[ResolutionTier]:
    """The cascade in priority order."""
    return [
        ClientHintsTier(matcher, logger),
        AndroidFingerprintTier(matcher, logger),
        AppleFingerprintTier(matcher, logger),
        AdvancedMatchTier(matcher, logger),
        SimpleSearchTier(matcher, logger),
    ]
