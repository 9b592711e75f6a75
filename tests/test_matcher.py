"""
Tests for tiered catalog matching
"""

import asyncio

import pytest

from quotex.exceptions import DecisionTransitionError, SemanticMatchError
from quotex.matching import InMemoryCatalog, SemanticMatcher, TieredMatcher
from quotex.matching.similarity import fuzzy_score, normalize_identifier, normalize_key, similarity
from quotex.models import CatalogEntry, DecidedBy, DecisionState, ExtractedRecord, MatchTier


class FakeSemanticMatcher(SemanticMatcher):
    """Semantic matcher returning a fixed confidence"""

    def __init__(self, confidence=0.92, error=None, delay=0.0):
        self.confidence = confidence
        self.error = error
        self.delay = delay
        self.calls = []

    async def evaluate(self, record, entry):
        self.calls.append(entry.id)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.confidence


@pytest.fixture
def widget_catalog():
    return InMemoryCatalog([
        CatalogEntry(id='w-1', name='Widget', manufacturer='Acme', manufacturer_part_number='ABC-123'),
    ])


@pytest.fixture
def borderline_record():
    # Scores 0.85 against w-1: part number 5/6 similar, same manufacturer, name 2/3 similar
    return ExtractedRecord(name='Gadget', manufacturer='Acme', manufacturer_part_number='ABC-124')


class TestSimilarity:
    """Test normalization and similarity helpers"""

    def test_normalize_key(self):
        """Test exact keys ignore case and whitespace"""
        assert normalize_key(' 6ES7 512-1DK01-0AB0 ') == '6es7512-1dk01-0ab0'
        assert normalize_key(None) == ''

    def test_normalize_identifier(self):
        """Test identifiers keep letters and digits only"""
        assert normalize_identifier('6ES7-512.1') == '6es75121'
        assert normalize_identifier('מק"ט 12') == 'מקט12'

    def test_similarity_bounds(self):
        """Test similarity edge cases"""
        assert similarity('ABC-123', 'abc 123') == 1.0
        assert similarity(None, 'abc') == 0.0
        assert 0.0 < similarity('abc123', 'abc124') < 1.0

    def test_fuzzy_score_breakdown(self, widget_catalog, borderline_record):
        """Test the weighted score and its breakdown"""
        entry = widget_catalog.lookup_candidates()[0]
        score, breakdown = fuzzy_score(borderline_record, entry, {'part_number': 0.5, 'manufacturer': 0.3, 'name': 0.2})
        assert breakdown['manufacturer'] == 1.0
        assert score == pytest.approx(0.85)


class TestExactTier:
    """Test exact matching"""

    @pytest.mark.asyncio
    async def test_exact_match_recommends_update(self, catalog, config):
        """Test same manufacturer and part number, ignoring case and whitespace"""
        record = ExtractedRecord(
            name='S7-1500 CPU',
            manufacturer='siemens',
            manufacturer_part_number='6es7512-1dk01-0ab0',
        )
        decision = await TieredMatcher(catalog, config=config).match(record)

        assert decision.candidates[0].candidate_id == 'cat-1'
        assert decision.candidates[0].tier == MatchTier.EXACT
        assert decision.candidates[0].confidence == 1.0
        assert decision.state == DecisionState.ACCEPT_UPDATE
        assert decision.selected_candidate_id == 'cat-1'
        assert decision.decided_by == DecidedBy.MATCHER

    @pytest.mark.asyncio
    async def test_supplier_divergence_recommends_new(self, catalog, config):
        """Test a different supplier turns an exact hit into a new entry"""
        record = ExtractedRecord(
            name='PLC', manufacturer='Siemens', manufacturer_part_number='6ES7512-1DK01-0AB0',
            supplier='Acme Distribution',
        )
        decision = await TieredMatcher(catalog, config=config).match(record)

        assert decision.state == DecisionState.CREATE_NEW
        assert decision.candidates[0].tier == MatchTier.EXACT
        assert 'Acme Distribution' in decision.recommendation_reason

    @pytest.mark.asyncio
    async def test_similar_supplier_keeps_update(self, catalog, config):
        """Test a near-identical supplier name does not block the update"""
        record = ExtractedRecord(
            name='PLC', manufacturer='Siemens', manufacturer_part_number='6ES7512-1DK01-0AB0',
            supplier='Rexel Israel Ltd',
        )
        decision = await TieredMatcher(catalog, config=config).match(record)
        assert decision.state == DecisionState.ACCEPT_UPDATE

    @pytest.mark.asyncio
    async def test_record_not_modified(self, catalog, config):
        """Test matching leaves the record untouched"""
        record = ExtractedRecord(name='PLC', manufacturer='Siemens', manufacturer_part_number='6ES7512-1DK01-0AB0')
        before = record.model_dump()
        await TieredMatcher(catalog, config=config).match(record)
        assert record.model_dump() == before


class TestFuzzyAndSemanticTiers:
    """Test fuzzy and semantic candidates"""

    @pytest.mark.asyncio
    async def test_high_fuzzy_candidate(self, catalog, config):
        """Test a high fuzzy score yields a pending decision with a candidate"""
        record = ExtractedRecord(
            name='CPU 1512C PLC Controller',
            manufacturer='Siemens AG',
            manufacturer_part_number='6ES7512-1DK01-0AB0',
        )
        decision = await TieredMatcher(catalog, config=config).match(record)

        assert decision.state == DecisionState.PENDING
        assert decision.decided_by is None
        assert [c.candidate_id for c in decision.candidates] == ['cat-1']
        candidate = decision.candidates[0]
        assert candidate.tier == MatchTier.FUZZY
        assert candidate.confidence >= 0.9
        assert candidate.fuzzy_breakdown['part_number'] == 1.0

    @pytest.mark.asyncio
    async def test_exact_and_fuzzy_ranked(self, catalog, config, siemens_entry):
        """Test candidates from several tiers are ranked by confidence"""
        variant = siemens_entry.model_copy(update={'id': 'cat-3', 'manufacturer': 'Siemens AG'})
        catalog = InMemoryCatalog(catalog.lookup_candidates() + [variant])
        record = ExtractedRecord(
            name='CPU 1512C PLC Controller',
            manufacturer='Siemens',
            manufacturer_part_number='6ES7512-1DK01-0AB0',
        )
        decision = await TieredMatcher(catalog, config=config).match(record)

        assert [c.candidate_id for c in decision.candidates] == ['cat-1', 'cat-3']
        assert [c.tier for c in decision.candidates] == [MatchTier.EXACT, MatchTier.FUZZY]

    @pytest.mark.asyncio
    async def test_semantic_accepts_borderline(self, widget_catalog, borderline_record, config):
        """Test a confident semantic verdict adds a candidate"""
        semantic = FakeSemanticMatcher(confidence=0.92)
        decision = await TieredMatcher(widget_catalog, semantic, config).match(borderline_record)

        assert semantic.calls == ['w-1']
        assert decision.state == DecisionState.PENDING
        assert decision.candidates[0].tier == MatchTier.SEMANTIC
        assert decision.candidates[0].confidence == pytest.approx(0.92)

    @pytest.mark.asyncio
    async def test_semantic_only_for_borderline_entries(self, config):
        """Test exact hits and high fuzzy candidates never reach the semantic matcher"""
        record = ExtractedRecord(name='Widget', manufacturer='Acme', manufacturer_part_number='ABC-123')
        entries = [
            CatalogEntry(id='w-1', name='Widget', manufacturer='Acme', manufacturer_part_number='ABC-123'),
            # Scores 0.94: same part number and name, manufacturer 4/5 similar
            CatalogEntry(id='w-2', name='Widget', manufacturer='Acme Co', manufacturer_part_number='ABC123'),
        ]
        semantic = FakeSemanticMatcher(confidence=0.92)
        decision = await TieredMatcher(InMemoryCatalog(entries), semantic, config).match(record)

        assert semantic.calls == []
        assert [c.tier for c in decision.candidates] == [MatchTier.EXACT, MatchTier.FUZZY]

        entries += [
            CatalogEntry(id='w-3', name='Gadget', manufacturer='Acme', manufacturer_part_number='ABC-124'),
            CatalogEntry(id='w-4', name='Hydraulic pump', manufacturer='Bosch', manufacturer_part_number='HP-100'),
        ]
        semantic = FakeSemanticMatcher(confidence=0.92)
        decision = await TieredMatcher(InMemoryCatalog(entries), semantic, config).match(record)

        assert semantic.calls == ['w-3']
        assert [c.candidate_id for c in decision.candidates] == ['w-1', 'w-2', 'w-3']
        assert decision.candidates[2].tier == MatchTier.SEMANTIC

    @pytest.mark.asyncio
    async def test_semantic_rejects_borderline(self, widget_catalog, borderline_record, config):
        """Test a weak semantic verdict leaves no candidate"""
        decision = await TieredMatcher(
            widget_catalog, FakeSemanticMatcher(confidence=0.5), config
        ).match(borderline_record)
        assert decision.candidates == []
        assert decision.state == DecisionState.CREATE_NEW

    @pytest.mark.asyncio
    async def test_semantic_error_skips_tier(self, widget_catalog, borderline_record, config):
        """Test semantic failures never fail the match"""
        semantic = FakeSemanticMatcher(error=SemanticMatchError('model down'))
        decision = await TieredMatcher(widget_catalog, semantic, config).match(borderline_record)
        assert decision.candidates == []
        assert decision.state == DecisionState.CREATE_NEW

    @pytest.mark.asyncio
    async def test_semantic_timeout_skips_tier(self, widget_catalog, borderline_record, config):
        """Test a slow semantic matcher is abandoned at the deadline"""
        semantic = FakeSemanticMatcher(delay=5)
        decision = await TieredMatcher(widget_catalog, semantic, config).match(borderline_record, timeout=0.05)
        assert decision.candidates == []

    @pytest.mark.asyncio
    async def test_without_semantic_matcher(self, widget_catalog, borderline_record, config):
        """Test borderline entries are dropped when no semantic matcher is set"""
        decision = await TieredMatcher(widget_catalog, config=config).match(borderline_record)
        assert decision.candidates == []

    @pytest.mark.asyncio
    async def test_no_candidates(self, catalog, config):
        """Test unknown products are recommended as new entries"""
        record = ExtractedRecord(name='Hydraulic pump', manufacturer='Bosch', manufacturer_part_number='HP-100')
        decision = await TieredMatcher(catalog, config=config).match(record)
        assert decision.candidates == []
        assert decision.state == DecisionState.CREATE_NEW
        assert decision.decided_by == DecidedBy.MATCHER


class TestMatchBatch:
    """Test batch matching and caller decisions"""

    @pytest.mark.asyncio
    async def test_batch_keyed_by_position(self, catalog, config):
        """Test one decision per record in record order"""
        records = [
            ExtractedRecord(name='PLC', manufacturer='Siemens', manufacturer_part_number='6ES7512-1DK01-0AB0'),
            ExtractedRecord(name='Hydraulic pump', manufacturer='Bosch', manufacturer_part_number='HP-100'),
            ExtractedRecord(name='Sensor', manufacturer='SICK', manufacturer_part_number='IME12-04BPSZC0S'),
        ]
        book = await TieredMatcher(catalog, config=config).match_batch(records)

        assert len(book) == 3
        assert [d.record_index for d in book] == [0, 1, 2]
        assert book[0].selected_candidate_id == 'cat-1'
        assert book[1].state == DecisionState.CREATE_NEW
        assert book[2].selected_candidate_id == 'cat-2'

    @pytest.mark.asyncio
    async def test_caller_overrides_recommendation(self, catalog, config):
        """Test the caller may reject a recommended update once"""
        record = ExtractedRecord(name='PLC', manufacturer='Siemens', manufacturer_part_number='6ES7512-1DK01-0AB0')
        book = await TieredMatcher(catalog, config=config).match_batch([record])

        book.create_new(0)
        assert book[0].state == DecisionState.CREATE_NEW
        with pytest.raises(DecisionTransitionError):
            book.accept(0)
