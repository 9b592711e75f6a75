"""
Catalog Matching Data Models

Catalog entries, match candidates and the per-record decision that the
tiered matcher produces and the caller resolves.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from quotex.exceptions import DecisionTransitionError
from quotex.models.extraction import Currency


class CatalogEntry(BaseModel):
    """A previously known catalog item (read-only view)"""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str
    name: str
    manufacturer: Optional[str] = None
    manufacturer_part_number: Optional[str] = None
    category: Optional[str] = None
    supplier: Optional[str] = None
    notes: Optional[str] = None
    unit_price_nis: Optional[float] = None
    unit_price_usd: Optional[float] = None
    unit_price_eur: Optional[float] = None
    currency: Optional[Currency] = None

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        return str(v)


class MatchTier(str, Enum):
    EXACT = "exact"
    FUZZY = "fuzzy"
    SEMANTIC = "semantic"


# Tie-break order when confidences are equal
TIER_RANK = {MatchTier.EXACT: 0, MatchTier.FUZZY: 1, MatchTier.SEMANTIC: 2}


class MatchCandidate(BaseModel):
    """One catalog entry that may correspond to an extracted record"""
    candidate_id: str
    tier: MatchTier
    confidence: float = Field(..., ge=0.0, le=1.0)
    justification: str = ""
    fuzzy_breakdown: Optional[Dict[str, float]] = None


class DecisionState(str, Enum):
    PENDING = "pending"
    ACCEPT_UPDATE = "accept_update"
    CREATE_NEW = "create_new"


class DecidedBy(str, Enum):
    MATCHER = "matcher"
    CALLER = "caller"


class MatchDecision(BaseModel):
    """
    Resolution state of one extracted record

    The matcher may recommend ``accept_update`` or ``create_new``; such a
    recommendation can still be overridden. A decision made by the caller
    is final.
    """
    record_index: int = Field(..., ge=0)
    candidates: List[MatchCandidate] = Field(default_factory=list)
    state: DecisionState = DecisionState.PENDING
    selected_candidate_id: Optional[str] = None
    decided_by: Optional[DecidedBy] = None
    recommendation_reason: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.state == DecisionState.PENDING

    @property
    def is_final(self) -> bool:
        return self.decided_by == DecidedBy.CALLER

    @property
    def best_candidate(self) -> Optional[MatchCandidate]:
        return self.candidates[0] if self.candidates else None

    def candidate(self, candidate_id: str) -> Optional[MatchCandidate]:
        for c in self.candidates:
            if c.candidate_id == candidate_id:
                return c
        return None

    def recommend(
        self,
        state: DecisionState,
        candidate_id: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> None:
        """Matcher-side pre-set; never overrides a caller decision"""
        if self.is_final:
            raise DecisionTransitionError(self.record_index, self.state.value)
        self._apply(state, candidate_id)
        self.decided_by = DecidedBy.MATCHER if state != DecisionState.PENDING else None
        self.recommendation_reason = reason

    def accept(self, candidate_id: Optional[str] = None) -> None:
        """Caller accepts a candidate; defaults to the top-ranked one"""
        if self.is_final:
            raise DecisionTransitionError(self.record_index, self.state.value)
        if candidate_id is None:
            if not self.candidates:
                raise DecisionTransitionError(
                    self.record_index, self.state.value,
                    f"Record {self.record_index} has no candidate to accept",
                )
            candidate_id = self.candidates[0].candidate_id
        if self.candidate(candidate_id) is None:
            raise ValueError(f"Unknown candidate {candidate_id} for record {self.record_index}")
        self._apply(DecisionState.ACCEPT_UPDATE, candidate_id)
        self.decided_by = DecidedBy.CALLER

    def create_new(self) -> None:
        """Caller decides the record becomes a new catalog entry"""
        if self.is_final:
            raise DecisionTransitionError(self.record_index, self.state.value)
        self._apply(DecisionState.CREATE_NEW, None)
        self.decided_by = DecidedBy.CALLER

    def _apply(self, state: DecisionState, candidate_id: Optional[str]) -> None:
        self.state = state
        self.selected_candidate_id = candidate_id if state == DecisionState.ACCEPT_UPDATE else None
