"""
Reference Matcher: fuzzy name search over the device corpus.

Every public method degrades to "no match" when the corpus is missing,
empty or faulting; a store error is logged and counted, never raised.
"""

from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from .logger import get_logger
from .models import ReferenceRecord
from .normalize import clean, tokenize

# Bound on rows fetched for the combined brand/model query
ADVANCED_CANDIDATE_LIMIT = 20


class ReferenceMatcher:

    def __init__(self, corpus, logger=None):
        self.corpus = corpus
        self.logger = logger or get_logger()

    @property
    def available(self) -> bool:
        return bool(self.corpus is not None and self.corpus.available)

    def _query(self, operation: str, func: Callable, *args, default=None):
        try:
            return func(*args)
        except SQLAlchemyError as e:
            self.logger.record_corpus_error(type(e).__name__)
            self.logger.error(
                "Corpus query failed, treating as no match",
                operation=operation,
                args=[str(a) for a in args],
                error=str(e),
            )
            return default

    def _first_containing(self, term: str) -> Optional[ReferenceRecord]:
        rows = self._query("contains", self.corpus.find_containing, term, 1, default=[])
        return rows[0] if rows else None

    def search_by_name(self, term: Optional[str]) -> Optional[ReferenceRecord]:
        """
        Find a device by name: exact, then substring, then per-token substring.

        Tokens are only tried for terms longer than 3 characters, and only
        tokens of at least 3 characters are probed. Within a stage the
        lowest corpus id wins.
        """
        term = clean(term)
        if term is None or not self.available:
            return None

        record = self._query("exact", self.corpus.find_exact, term)
        if record is None:
            record = self._first_containing(term)
        if record is None and len(term) > 3:
            for token in tokenize(term):
                record = self._first_containing(token)
                if record:
                    break

        self.logger.debug(
            "Name search",
            term=term,
            result=record.full_name if record else None,
        )
        return record

    def advanced_match(
        self,
        brand: Optional[str] = None,
        model: Optional[str] = None,
        screen_width: Optional[int] = None,
        screen_height: Optional[int] = None,
        gpu_renderer: Optional[str] = None,
    ) -> Optional[ReferenceRecord]:
        """
        Combined brand/model lookup.

        Queries "brand model" as a substring (bounded candidate list), then
        the model alone. Returns the first candidate as-is: screen geometry
        and GPU are accepted but not used to narrow the candidates.
        """
        brand, model = clean(brand), clean(model)
        if not self.available:
            return None
        candidates: List[ReferenceRecord] = []

        if brand and model:
            candidates = self._query(
                "advanced", self.corpus.find_containing, f"{brand} {model}",
                ADVANCED_CANDIDATE_LIMIT, default=[],
            )
        if not candidates and model:
            candidates = self._query(
                "advanced", self.corpus.find_containing, model,
                ADVANCED_CANDIDATE_LIMIT, default=[],
            )

        return candidates[0] if candidates else None

    def search_many(self, term: Optional[str], limit: int = 10) -> List[ReferenceRecord]:
        """Substring search returning up to limit rows (diagnostics)."""
        term = clean(term)
        if term is None or not self.available:
            return []
        return self._query("many", self.corpus.find_containing, term, limit, default=[])

    def stats(self) -> Dict[str, Any]:
        if self.corpus is None:
            return {"totalDevices": 0, "databasePath": None}
        path = self.corpus.db_path
        return {
            "totalDevices": self.corpus.total_devices if self.available else 0,
            "databasePath": str(path) if path else None,
        }
