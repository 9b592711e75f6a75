"""
Text-Pattern Extractor

Extracts records from text-bearing documents (PDFs with a text layer and
plain text exports) without a model call.

Strategies, in order:
1. A header line followed by column-aligned rows is read like a sheet
2. Table-looking lines are mined for part numbers, prices and names
3. Otherwise each paragraph is treated as one item

Scores are capped because text layout loses column boundaries.
"""

import io
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from pdfminer.high_level import extract_text
from pdfminer.pdfpage import PDFPage

from quotex.models.extraction import DocumentPayload, ExtractedRecord, ExtractionResult, ExtractorKind
from quotex.processors.base import BaseExtractor
from quotex.processors.price_normalizer import ParsedPrice
from quotex.processors.tabular import TabularExtractor

logger = logging.getLogger(__name__)

PDF_SIGNATURE = b'%PDF'

_NUM = r'(\d[\d,.]*\d|\d)'
_NIS_TOKENS = r'(?:NIS|ILS|שקל|ש"ח|ש״ח)'
PRICE_PATTERNS = [
    re.compile(rf'\$\s*{_NUM}'),
    re.compile(rf'{_NUM}\s*USD', re.IGNORECASE),
    re.compile(rf'USD\s*{_NUM}', re.IGNORECASE),
    re.compile(rf'€\s*{_NUM}'),
    re.compile(rf'{_NUM}\s*EUR', re.IGNORECASE),
    re.compile(rf'EUR\s*{_NUM}', re.IGNORECASE),
    re.compile(rf'₪\s*{_NUM}'),
    re.compile(rf'{_NUM}\s*{_NIS_TOKENS}', re.IGNORECASE),
    re.compile(rf'{_NIS_TOKENS}\s*{_NUM}', re.IGNORECASE),
]

_PN = r'([A-Z0-9][A-Z0-9./-]*)'
PART_NUMBER_PATTERNS = [
    re.compile(rf'P/N[:\s]+{_PN}', re.IGNORECASE),
    re.compile(rf'Part\s*(?:#|No\.?|Number)[:\s]+{_PN}', re.IGNORECASE),
    re.compile(rf'\bPN[:\s]+{_PN}', re.IGNORECASE),
    re.compile(rf'קטלוגי[:\s]+{_PN}', re.IGNORECASE),
    re.compile(rf'מק"ט[:\s]+{_PN}', re.IGNORECASE),
    re.compile(rf'Catalog\s*(?:#|No\.?)[:\s]+{_PN}', re.IGNORECASE),
]
PART_NUMBER_LABEL = re.compile(
    r'(?:P/N|Part\s*(?:#|No\.?|Number)|\bPN|קטלוגי|מק"ט|Catalog\s*(?:#|No\.?))[:\s]+[A-Z0-9][A-Z0-9./-]*',
    re.IGNORECASE,
)

SEGMENT_SPLIT = re.compile(r'\s{2,}|\t|\|')
MIN_NAME_LENGTH = 6
TABULAR_LINE_RATIO = 0.2


def split_segments(line: str) -> List[str]:
    return [s.strip() for s in SEGMENT_SPLIT.split(line) if s.strip()]


def has_tabular_structure(text: str) -> bool:
    """More than a fifth of the non-empty lines split into three or more columns"""
    lines = [line for line in text.split('\n') if line.strip()]
    if not lines:
        return False
    tabular = sum(1 for line in lines if len(split_segments(line)) >= 3)
    return tabular > len(lines) * TABULAR_LINE_RATIO


class TextPatternExtractor(BaseExtractor):
    """Pattern-based extraction from document text"""

    kind = ExtractorKind.TEXT_PATTERN

    def __init__(self, config=None):
        super().__init__(config)
        self.tabular = TabularExtractor(self.config)
        self.cap_limit = self.config.confidence.text_pattern_cap

    async def extract(self, payload: DocumentPayload) -> ExtractionResult:
        try:
            text, page_count = self.read_text(payload)
        except Exception as e:
            logger.error(f"Failed to read text from {payload.filename}: {e}", exc_info=True)
            return self.failure(f"Failed to read document text: {e}")

        if not text or not text.strip():
            return self.failure(
                "No text could be extracted. The document may be scanned or image-based; "
                "use vision extraction instead.",
                metadata={'page_count': page_count, 'text_length': 0},
            )

        result = self.extract_text(text, page_count)
        logger.info(
            f"Extracted {result.record_count} records from {payload.filename or 'text'} "
            f"using {result.metadata['extraction_method']} method"
        )
        return result

    def read_text(self, payload: DocumentPayload) -> Tuple[str, int]:
        """Document text and page count"""
        if payload.data.startswith(PDF_SIGNATURE) or payload.extension == 'pdf' \
                or 'pdf' in payload.content_type:
            return self.read_pdf(payload.data)
        for encoding in ('utf-8-sig', 'cp1255', 'latin-1'):
            try:
                return payload.data.decode(encoding), 1
            except UnicodeDecodeError:
                continue
        return '', 1

    @staticmethod
    def read_pdf(data: bytes) -> Tuple[str, int]:
        text = extract_text(io.BytesIO(data))
        page_count = sum(1 for _ in PDFPage.get_pages(io.BytesIO(data)))
        return text, page_count

    def extract_text(self, text: str, page_count: int = 1) -> ExtractionResult:
        """Extract records from already-decoded text"""
        tabular = has_tabular_structure(text)
        records: List[ExtractedRecord] = []
        detected: Dict[str, int] = {}

        if tabular:
            records, detected = self.extract_header_grid(text)
            if not records:
                records = self.extract_lines(text)
        if not records:
            records = self.extract_paragraphs(text)

        metadata = {
            'page_count': page_count,
            'text_length': len(text),
            'extraction_method': 'structured' if tabular else 'text',
            'has_tabular_data': tabular,
        }
        if detected:
            metadata['detected_columns'] = detected

        message = None
        if not records:
            message = "No records were recognized in the document text; try vision extraction"
        return self.finish(records, metadata, cap=self.cap_limit, message=message)

    def extract_header_grid(self, text: str) -> Tuple[List[ExtractedRecord], Dict[str, int]]:
        """Read a header line and the aligned rows below it"""
        lines = [split_segments(line) for line in text.split('\n')]
        lines = [segments for segments in lines if len(segments) >= 2]
        for start, segments in enumerate(lines):
            detected = self.tabular.recognizer.detect(segments)
            if len(detected) >= 2 and ('name' in detected or 'part_number' in detected):
                width = len(segments)
                records = []
                for row in lines[start + 1:]:
                    if len(row) != width:
                        continue
                    record = self.tabular.record_from_row(row, detected)
                    if record is not None and (record.has_price or record.manufacturer_part_number):
                        records.append(record)
                return records, detected
        return [], {}

    def find_price(self, text: str) -> Optional[ParsedPrice]:
        for pattern in PRICE_PATTERNS:
            match = pattern.search(text)
            if not match:
                continue
            parsed = self.normalizer.parse(match.group(0))
            if parsed is not None:
                return parsed
        return None

    @staticmethod
    def find_part_number(text: str) -> Optional[str]:
        for pattern in PART_NUMBER_PATTERNS:
            match = pattern.search(text)
            if match:
                return match.group(1).rstrip('./-')
        return None

    def extract_lines(self, text: str) -> List[ExtractedRecord]:
        """One record per table-looking line"""
        records = []
        for line in text.split('\n'):
            if not line.strip():
                continue
            part_number = self.find_part_number(line)
            price = self.find_price(line)

            candidates = [
                s for s in split_segments(line)
                if len(s) >= MIN_NAME_LENGTH
                and not any(p.search(s) for p in PRICE_PATTERNS)
                and not PART_NUMBER_LABEL.fullmatch(s)
            ]
            name = max(candidates, key=len) if candidates else None
            if not name and not part_number:
                continue
            record = self._record(name or part_number, part_number, price)
            if record is not None:
                records.append(record)
        return records

    def extract_paragraphs(self, text: str) -> List[ExtractedRecord]:
        """One record per blank-line separated paragraph with a part number or price"""
        records = []
        for paragraph in re.split(r'\n\s*\n', text):
            lines = [line.strip() for line in paragraph.split('\n') if line.strip()]
            if not lines:
                continue
            part_number = self.find_part_number(paragraph)
            price = self.find_price(paragraph)
            name = PART_NUMBER_LABEL.sub('', lines[0]).strip(' -:,')
            if not name or not (part_number or price):
                continue
            notes = ' '.join(lines[1:]) or None
            record = self._record(name, part_number, price, notes=notes)
            if record is not None:
                records.append(record)
        return records

    def _record(
        self,
        name: str,
        part_number: Optional[str],
        price: Optional[ParsedPrice],
        **fields: Any,
    ) -> Optional[ExtractedRecord]:
        amount = currency = None
        if price is not None:
            amount = price.amount
            currency = self.normalizer.resolve_currency(price.currency)
        return self.build_record(
            name,
            amount,
            currency,
            manufacturer_part_number=part_number,
            category=self.categories.infer(name),
            **fields,
        )
