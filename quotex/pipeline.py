"""
Import pipeline

Runs one document through extraction and catalog matching and hands the
records with their decisions to a review sink.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from quotex.matching.decisions import DecisionBook
from quotex.matching.matcher import TieredMatcher
from quotex.models.extraction import DocumentPayload, ExtractionResult
from quotex.processors.router import ExtractionRouter
from quotex.utils.currency_conversion import ExchangeRates, fill_record_prices

logger = logging.getLogger(__name__)


class ImportBatch:
    """Extracted records of one document and their match decisions"""

    def __init__(self, source: str, result: ExtractionResult, decisions: DecisionBook):
        self.source = source
        self.result = result
        self.decisions = decisions

    @property
    def success(self) -> bool:
        return self.result.success

    def to_dict(self) -> Dict[str, Any]:
        return {
            'source': self.source,
            'extraction': self.result.model_dump(mode='json'),
            'decisions': self.decisions.to_list(),
            'summary': self.decisions.summary(),
        }


class ReviewSink(ABC):
    """Receives finished batches for review and commit"""

    @abstractmethod
    async def submit(self, batch: ImportBatch) -> None:
        pass


class ImportPipeline:
    """Extraction followed by catalog matching"""

    def __init__(
        self,
        router: ExtractionRouter,
        matcher: TieredMatcher,
        sink: Optional[ReviewSink] = None,
        rates: Optional[ExchangeRates] = None,
    ):
        """
        Args:
            router: Extraction router
            matcher: Tiered matcher over the catalog
            sink: Optional review sink receiving each batch
            rates: When given, records get prices in all three currencies
        """
        self.router = router
        self.matcher = matcher
        self.sink = sink
        self.rates = rates

    async def run(self, payload: DocumentPayload, timeout: Optional[float] = None) -> ImportBatch:
        """Extract and match one document

        Args:
            payload: Document bytes and metadata
            timeout: Deadline in seconds for each model call

        Returns:
            ImportBatch; a failed extraction yields an empty decision book
        """
        result = await self.router.extract(payload, timeout=timeout)
        if not result.success:
            logger.warning(f"Extraction failed for {payload.filename}: {result.error}")
            decisions = DecisionBook()
        else:
            if self.rates is not None:
                result.records = [fill_record_prices(r, self.rates) for r in result.records]
            decisions = await self.matcher.match_batch(result.records, timeout=timeout)

        batch = ImportBatch(payload.filename, result, decisions)
        if self.sink is not None:
            await self.sink.submit(batch)
        return batch
