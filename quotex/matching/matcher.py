"""
Tiered Matcher

Reconciles extracted records against the catalog in three tiers:

1. Exact: same manufacturer and part number, ignoring case and whitespace.
   The matcher recommends updating that entry.
2. Fuzzy: weighted SequenceMatcher similarity over part number,
   manufacturer and name, run against every catalog entry.
3. Semantic: borderline fuzzy candidates are checked by a semantic matcher.
   Any semantic failure or timeout drops the tier for that record.

Candidates from all tiers are ranked by confidence. Records with no
candidate are recommended as new entries; everything else without an exact
hit is left pending for the caller.
"""

import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

from quotex.config.quotex_config import QuotexConfig
from quotex.matching.catalog import CatalogReader
from quotex.matching.decisions import DecisionBook
from quotex.matching.semantic import SemanticMatcher, SemanticVerdict
from quotex.matching.similarity import describe_breakdown, fuzzy_score, similarity
from quotex.models.extraction import ExtractedRecord
from quotex.models.matching import (
    TIER_RANK,
    CatalogEntry,
    DecisionState,
    MatchCandidate,
    MatchDecision,
    MatchTier,
)

logger = logging.getLogger(__name__)


class TieredMatcher:
    """Exact, fuzzy and semantic matching against a read-only catalog"""

    def __init__(
        self,
        catalog: CatalogReader,
        semantic_matcher: Optional[SemanticMatcher] = None,
        config: Optional[QuotexConfig] = None,
    ):
        """
        Args:
            catalog: Catalog reader
            semantic_matcher: Optional semantic tier; omitted means the tier is skipped
            config: quotex configuration
        """
        self.catalog = catalog
        self.semantic_matcher = semantic_matcher
        self.config = config or QuotexConfig.default()
        self.settings = self.config.matching

    async def match(
        self,
        record: ExtractedRecord,
        record_index: int = 0,
        timeout: Optional[float] = None,
    ) -> MatchDecision:
        """Match one record

        Args:
            record: Extracted record (not modified)
            record_index: Position of the record in its extraction result
            timeout: Deadline in seconds for the semantic tier

        Returns:
            MatchDecision with ranked candidates and the matcher's recommendation
        """
        exact_entry = self.catalog.lookup_exact(record.manufacturer, record.manufacturer_part_number)
        candidates: List[MatchCandidate] = []
        if exact_entry is not None:
            candidates.append(MatchCandidate(
                candidate_id=exact_entry.id,
                tier=MatchTier.EXACT,
                confidence=self.settings.exact_confidence,
                justification="Exact match on manufacturer and part number",
            ))

        excluded = exact_entry.id if exact_entry is not None else None
        high, borderline = self.fuzzy_candidates(record, excluded)
        candidates.extend(high)
        if borderline:
            candidates.extend(await self.semantic_candidates(record, borderline, timeout))

        candidates.sort(key=lambda c: (-c.confidence, TIER_RANK[c.tier]))
        decision = MatchDecision(record_index=record_index, candidates=candidates)

        if exact_entry is not None:
            self._recommend_exact(decision, record, exact_entry)
        elif not candidates:
            decision.recommend(
                DecisionState.CREATE_NEW,
                reason="No catalog entry cleared any matching threshold",
            )

        logger.debug(
            f"Record {record_index} ({record.name!r}): {len(candidates)} candidate(s), "
            f"state {decision.state.value}"
        )
        return decision

    def fuzzy_candidates(
        self,
        record: ExtractedRecord,
        exclude_id: Optional[str] = None,
    ) -> Tuple[List[MatchCandidate], List[Tuple[float, CatalogEntry, MatchCandidate]]]:
        """High-confidence fuzzy candidates and borderline entries, best first"""
        high: List[MatchCandidate] = []
        borderline: List[Tuple[float, CatalogEntry, MatchCandidate]] = []
        for entry in self.catalog.lookup_candidates():
            if entry.id == exclude_id:
                continue
            score, breakdown = fuzzy_score(record, entry, self.settings.weights)
            if score < self.settings.fuzzy_borderline:
                continue
            candidate = MatchCandidate(
                candidate_id=entry.id,
                tier=MatchTier.FUZZY,
                confidence=score,
                justification=describe_breakdown(breakdown),
                fuzzy_breakdown=breakdown,
            )
            if score >= self.settings.fuzzy_high:
                high.append(candidate)
            else:
                borderline.append((score, entry, candidate))
        high.sort(key=lambda c: -c.confidence)
        borderline.sort(key=lambda item: -item[0])
        return high, borderline

    async def semantic_candidates(
        self,
        record: ExtractedRecord,
        borderline: Sequence[Tuple[float, CatalogEntry, MatchCandidate]],
        timeout: Optional[float] = None,
    ) -> List[MatchCandidate]:
        """Semantic-tier candidates for the top borderline entries

        Returns an empty list when no semantic matcher is configured or when
        any evaluation fails or the deadline passes.
        """
        if self.semantic_matcher is None or self.settings.max_semantic_candidates == 0:
            return []

        top = list(borderline[:self.settings.max_semantic_candidates])
        deadline = timeout if timeout is not None else self.settings.semantic_timeout
        checks = asyncio.gather(
            *(self.semantic_matcher.assess(record, entry) for _, entry, _ in top),
            return_exceptions=True,
        )
        try:
            verdicts = await asyncio.wait_for(checks, timeout=deadline)
        except asyncio.TimeoutError:
            logger.warning(f"Semantic matching timed out after {deadline}s for {record.name!r}; tier skipped")
            return []

        errors = [v for v in verdicts if isinstance(v, BaseException)]
        if errors:
            logger.warning(f"Semantic matching failed for {record.name!r}; tier skipped: {errors[0]}")
            return []

        candidates = []
        for (score, entry, _), verdict in zip(top, verdicts):
            verdict = verdict if isinstance(verdict, SemanticVerdict) else SemanticVerdict(float(verdict))
            if verdict.confidence >= self.settings.semantic_accept:
                reason = f"Semantic match (fuzzy {score:.0%})"
                if verdict.reasoning:
                    reason = f"{reason}: {verdict.reasoning}"
                candidates.append(MatchCandidate(
                    candidate_id=entry.id,
                    tier=MatchTier.SEMANTIC,
                    confidence=min(max(verdict.confidence, 0.0), 1.0),
                    justification=reason,
                ))
        candidates.sort(key=lambda c: -c.confidence)
        return candidates

    def supplier_similarity(self, record: ExtractedRecord, entry: CatalogEntry) -> Optional[float]:
        """Similarity of the record's supplier to the entry's, when both are known"""
        catalog_supplier = self.catalog.get_supplier(entry)
        if not record.supplier or not catalog_supplier:
            return None
        return similarity(record.supplier, catalog_supplier)

    def _recommend_exact(self, decision: MatchDecision, record: ExtractedRecord, entry: CatalogEntry) -> None:
        supplier_score = self.supplier_similarity(record, entry)
        if supplier_score is not None and supplier_score < self.settings.supplier_divergence:
            decision.recommend(
                DecisionState.CREATE_NEW,
                reason=(
                    f"Supplier '{record.supplier}' differs from catalog supplier "
                    f"'{self.catalog.get_supplier(entry)}' ({supplier_score:.0%} similar)"
                ),
            )
            return
        decision.recommend(
            DecisionState.ACCEPT_UPDATE,
            candidate_id=entry.id,
            reason="Exact match on manufacturer and part number",
        )

    async def match_batch(
        self,
        records: Sequence[ExtractedRecord],
        timeout: Optional[float] = None,
    ) -> DecisionBook:
        """Match records concurrently; decisions are keyed by record position"""
        decisions = await asyncio.gather(
            *(self.match(record, index, timeout) for index, record in enumerate(records))
        )
        book = DecisionBook(decisions)
        summary = book.summary()
        logger.info(
            f"Matched {summary['total']} records: {summary['accept_update']} update, "
            f"{summary['create_new']} new, {summary['pending']} pending"
        )
        return book
