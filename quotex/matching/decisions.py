"""
Decision book

Holds one MatchDecision per extracted record, keyed by the record's
position in its ExtractionResult. Withdrawn records lose their decision
entirely.
"""

import logging
from typing import Dict, Iterable, Iterator, List, Optional

from quotex.models.matching import DecisionState, MatchDecision

logger = logging.getLogger(__name__)


class DecisionBook:
    """Match decisions for one import batch"""

    def __init__(self, decisions: Iterable[MatchDecision] = ()):
        self._decisions: Dict[int, MatchDecision] = {}
        for decision in decisions:
            self.add(decision)

    def add(self, decision: MatchDecision) -> None:
        if decision.record_index in self._decisions:
            raise ValueError(f"Record {decision.record_index} already has a decision")
        self._decisions[decision.record_index] = decision

    def get(self, record_index: int) -> Optional[MatchDecision]:
        return self._decisions.get(record_index)

    def __getitem__(self, record_index: int) -> MatchDecision:
        return self._decisions[record_index]

    def __contains__(self, record_index: int) -> bool:
        return record_index in self._decisions

    def __len__(self) -> int:
        return len(self._decisions)

    def __iter__(self) -> Iterator[MatchDecision]:
        return iter(self.decisions)

    @property
    def decisions(self) -> List[MatchDecision]:
        """Decisions in record order"""
        return [self._decisions[i] for i in sorted(self._decisions)]

    def accept(self, record_index: int, candidate_id: Optional[str] = None) -> MatchDecision:
        """Caller accepts a candidate for the record"""
        decision = self[record_index]
        decision.accept(candidate_id)
        logger.debug(f"Record {record_index}: accepted candidate {decision.selected_candidate_id}")
        return decision

    def create_new(self, record_index: int) -> MatchDecision:
        """Caller decides the record becomes a new catalog entry"""
        decision = self[record_index]
        decision.create_new()
        logger.debug(f"Record {record_index}: marked as new")
        return decision

    def withdraw(self, record_index: int) -> Optional[MatchDecision]:
        """Drop a record from the batch; returns the removed decision, if any"""
        decision = self._decisions.pop(record_index, None)
        if decision is not None:
            logger.debug(f"Record {record_index}: withdrawn")
        return decision

    def in_state(self, state: DecisionState) -> List[MatchDecision]:
        return [d for d in self.decisions if d.state == state]

    def pending(self) -> List[MatchDecision]:
        return self.in_state(DecisionState.PENDING)

    @property
    def pending_count(self) -> int:
        return len(self.pending())

    def accepted(self) -> List[MatchDecision]:
        return self.in_state(DecisionState.ACCEPT_UPDATE)

    def new_records(self) -> List[MatchDecision]:
        return self.in_state(DecisionState.CREATE_NEW)

    def summary(self) -> Dict[str, int]:
        counts = {state.value: 0 for state in DecisionState}
        for decision in self._decisions.values():
            counts[decision.state.value] += 1
        counts['total'] = len(self._decisions)
        return counts

    def to_list(self) -> List[dict]:
        return [d.model_dump(mode='json') for d in self.decisions]
