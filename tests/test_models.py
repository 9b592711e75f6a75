"""
Tests for extraction and matching data models
"""

import pytest
from pydantic import ValidationError

from quotex.exceptions import DecisionTransitionError
from quotex.models import (
    CatalogEntry,
    Currency,
    DecidedBy,
    DecisionState,
    DocumentPayload,
    ExtractedRecord,
    ExtractionResult,
    ExtractorKind,
    MatchCandidate,
    MatchDecision,
    MatchTier,
)


class TestExtractedRecord:
    """Test record validation"""

    def test_price_requires_currency(self):
        """Test a priced record must name its currency"""
        with pytest.raises(ValidationError):
            ExtractedRecord(name='Widget', unit_price_usd=10.0)

    def test_currency_must_match_price_field(self):
        """Test the currency's own price field must be populated"""
        with pytest.raises(ValidationError):
            ExtractedRecord(name='Widget', unit_price_usd=10.0, currency='EUR')

    def test_prices_must_be_positive(self):
        """Test zero and negative prices are rejected"""
        with pytest.raises(ValidationError):
            ExtractedRecord(name='Widget', unit_price_usd=0, currency='USD')
        with pytest.raises(ValidationError):
            ExtractedRecord(name='Widget', unit_price_usd=-1, currency='USD')

    def test_name_required(self):
        """Test a blank name is rejected"""
        with pytest.raises(ValidationError):
            ExtractedRecord(name='   ')

    def test_quantity_positive(self):
        """Test quantity must be at least one"""
        with pytest.raises(ValidationError):
            ExtractedRecord(name='Widget', quantity=0)

    def test_blank_optional_strings(self):
        """Test blank optional strings become None"""
        record = ExtractedRecord(name=' Widget ', manufacturer='  ', notes='')
        assert record.name == 'Widget'
        assert record.manufacturer is None
        assert record.notes is None

    def test_original_price(self):
        """Test the quoted price is read from the currency's field"""
        record = ExtractedRecord(
            name='Widget', unit_price_eur=5.0, unit_price_usd=5.4, currency='EUR'
        )
        assert record.has_price
        assert record.original_price == 5.0
        assert record.price_in(Currency.USD) == 5.4

    def test_unpriced_record(self):
        """Test records without a price carry no currency requirement"""
        record = ExtractedRecord(name='Widget')
        assert not record.has_price
        assert record.original_price is None


class TestExtractionResult:
    """Test result envelope invariants"""

    def test_failure_has_no_records(self):
        """Test a failed result cannot carry records"""
        with pytest.raises(ValidationError):
            ExtractionResult(success=False, error='boom', records=[ExtractedRecord(name='x')])

    def test_failure_requires_error(self):
        """Test a failed result must explain itself"""
        with pytest.raises(ValidationError):
            ExtractionResult(success=False)

    def test_failure_helper(self):
        """Test the failure constructor"""
        result = ExtractionResult.failure('Unreadable', extractor=ExtractorKind.TABULAR)
        assert result.success is False
        assert result.records == []
        assert result.confidence == 0.0
        assert result.extractor == ExtractorKind.TABULAR

    def test_payload_normalization(self):
        """Test content type and filename are normalized"""
        payload = DocumentPayload(data=b'abc', content_type=' Text/CSV ', filename=' Quote.CSV ')
        assert payload.content_type == 'text/csv'
        assert payload.extension == 'csv'
        assert payload.size_bytes == 3
        assert DocumentPayload(data=b'', filename='README').extension == ''


class TestMatchDecision:
    """Test the decision state machine"""

    def _decision(self):
        return MatchDecision(record_index=0, candidates=[
            MatchCandidate(candidate_id='a', tier=MatchTier.FUZZY, confidence=0.95),
            MatchCandidate(candidate_id='b', tier=MatchTier.SEMANTIC, confidence=0.9),
        ])

    def test_starts_pending(self):
        """Test new decisions are pending and not final"""
        decision = self._decision()
        assert decision.is_pending
        assert not decision.is_final
        assert decision.best_candidate.candidate_id == 'a'

    def test_accept_defaults_to_top_candidate(self):
        """Test accepting without an id picks the best candidate"""
        decision = self._decision()
        decision.accept()
        assert decision.state == DecisionState.ACCEPT_UPDATE
        assert decision.selected_candidate_id == 'a'
        assert decision.decided_by == DecidedBy.CALLER

    def test_accept_specific_candidate(self):
        """Test a lower-ranked candidate can be chosen"""
        decision = self._decision()
        decision.accept('b')
        assert decision.selected_candidate_id == 'b'

    def test_accept_unknown_candidate(self):
        """Test unknown candidate ids are rejected"""
        with pytest.raises(ValueError):
            self._decision().accept('zzz')

    def test_caller_decision_is_final(self):
        """Test a caller decision cannot be changed"""
        decision = self._decision()
        decision.create_new()
        assert decision.selected_candidate_id is None
        with pytest.raises(DecisionTransitionError):
            decision.accept('a')
        with pytest.raises(DecisionTransitionError):
            decision.recommend(DecisionState.ACCEPT_UPDATE, 'a')

    def test_recommendation_can_be_overridden(self):
        """Test the caller may override the matcher's recommendation"""
        decision = self._decision()
        decision.recommend(DecisionState.ACCEPT_UPDATE, 'a', reason='exact')
        assert decision.decided_by == DecidedBy.MATCHER
        decision.create_new()
        assert decision.state == DecisionState.CREATE_NEW
        assert decision.is_final

    def test_accept_without_candidates(self):
        """Test accepting is impossible when nothing matched"""
        with pytest.raises(DecisionTransitionError):
            MatchDecision(record_index=3).accept()


class TestCatalogEntry:
    """Test catalog entries"""

    def test_id_coerced_to_string(self):
        """Test numeric ids are stored as strings"""
        assert CatalogEntry(id=42, name='Widget').id == '42'

    def test_entry_is_immutable(self):
        """Test catalog entries cannot be modified"""
        entry = CatalogEntry(id='1', name='Widget')
        with pytest.raises(ValidationError):
            entry.name = 'Other'
