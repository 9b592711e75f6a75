"""
Tabular Extractor

Reads supplier price lists from CSV files and Excel workbooks (.xlsx/.xls).

Features:
- Header detection in English and Hebrew
- Price parsing with per-cell, per-column or default currency
- Category resolution against the configured category list
- Per-record and aggregate confidence scores
- Empty rows skipped; only the first worksheet is read
"""

import csv
import io
import logging
import math
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from quotex.models.extraction import DocumentPayload, ExtractedRecord, ExtractionResult, ExtractorKind
from quotex.processors.base import BaseExtractor
from quotex.processors.field_recognizer import FieldRecognizer

logger = logging.getLogger(__name__)

ZIP_SIGNATURE = b'PK\x03\x04'
OLE_SIGNATURE = b'\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1'
CSV_ENCODINGS = ('utf-8-sig', 'cp1255', 'latin-1')


def is_empty_cell(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def cell_text(value: Any) -> Optional[str]:
    """Cell as trimmed text; whole floats lose their trailing '.0'"""
    if is_empty_cell(value):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


class TabularExtractor(BaseExtractor):
    """Extracts records from spreadsheet-shaped documents"""

    kind = ExtractorKind.TABULAR

    def __init__(self, config=None):
        super().__init__(config)
        self.recognizer = FieldRecognizer(self.config)

    async def extract(self, payload: DocumentPayload) -> ExtractionResult:
        try:
            if self._is_workbook(payload):
                sheet_name, rows, sheet_count = self.read_workbook(payload.data)
            else:
                sheet_name, rows, sheet_count = 'CSV', self.read_csv(payload.data), 1
        except Exception as e:
            logger.error(f"Failed to read spreadsheet {payload.filename}: {e}", exc_info=True)
            return self.failure(f"Failed to read spreadsheet: {e}")

        result = self.extract_grid(rows, sheet_name)
        result.metadata['sheets_available'] = sheet_count
        logger.info(
            f"Extracted {result.record_count} records from {payload.filename or sheet_name} "
            f"(confidence {result.confidence:.2f})"
        )
        return result

    @staticmethod
    def _is_workbook(payload: DocumentPayload) -> bool:
        if payload.data.startswith(ZIP_SIGNATURE) or payload.data.startswith(OLE_SIGNATURE):
            return True
        return payload.extension in ('xlsx', 'xls')

    @staticmethod
    def read_workbook(data: bytes):
        """First worksheet of a workbook as a list of rows"""
        with pd.ExcelFile(io.BytesIO(data)) as workbook:
            sheet_name = workbook.sheet_names[0]
            frame = workbook.parse(sheet_name, header=None, dtype=object)
        frame = frame.astype(object).where(pd.notna(frame), None)
        return str(sheet_name), frame.values.tolist(), len(workbook.sheet_names)

    @staticmethod
    def read_csv(data: bytes) -> List[List[str]]:
        text = None
        for encoding in CSV_ENCODINGS:
            try:
                text = data.decode(encoding)
                break
            except UnicodeDecodeError:
                continue
        if not text:
            return []
        try:
            dialect = csv.Sniffer().sniff(text[:4096], delimiters=',;\t|')
        except csv.Error:
            dialect = csv.excel
        return [row for row in csv.reader(io.StringIO(text), dialect)]

    def extract_grid(self, rows: Sequence[Sequence[Any]], sheet_name: str = 'Sheet1') -> ExtractionResult:
        """Extract records from a grid whose first non-empty row holds the headers

        Args:
            rows: Cell rows in document order
            sheet_name: Name reported in metadata

        Returns:
            ExtractionResult with tabular metadata
        """
        rows = [list(r) for r in rows if r and not all(is_empty_cell(c) for c in r)]
        if not rows:
            return self.finish([], {
                'sheet_name': sheet_name,
                'row_count': 0,
                'column_headers': [],
                'detected_columns': {},
                'sheets_processed': 1,
            }, message="The sheet is empty")

        headers = [cell_text(h) or '' for h in rows[0]]
        detected = self.recognizer.detect(headers)

        records: List[ExtractedRecord] = []
        for row in rows[1:]:
            record = self.record_from_row(row, detected)
            if record is not None:
                records.append(record)

        metadata = {
            'sheet_name': sheet_name,
            'row_count': len(rows) - 1,
            'column_headers': headers,
            'detected_columns': detected,
            'sheets_processed': 1,
        }
        message = None if records else "No records could be read from the sheet"
        return self.finish(records, metadata, message=message)

    def record_from_row(self, row: Sequence[Any], detected: Dict[str, int]) -> Optional[ExtractedRecord]:
        def cell(field: str) -> Any:
            index = detected.get(field)
            if index is None or index >= len(row):
                return None
            return row[index]

        name = cell_text(cell('name'))
        if not name:
            name = next((cell_text(c) for c in row if not is_empty_cell(c)), None)
        if not name:
            return None

        fields: Dict[str, Any] = {
            'manufacturer': cell_text(cell('manufacturer')),
            'manufacturer_part_number': cell_text(cell('part_number')),
            'notes': cell_text(cell('description')),
            'supplier': cell_text(cell('supplier')),
            'quantity': self.normalizer.parse_quantity(cell('quantity')),
        }
        raw_category = cell_text(cell('category'))
        if raw_category:
            fields['category'] = self.categories.resolve(raw_category)

        price = currency = None
        raw_price = cell('price')
        parsed = self.normalizer.parse(raw_price) if not is_empty_cell(raw_price) else None
        if parsed is not None:
            price = parsed.amount
            currency = self.normalizer.resolve_currency(
                parsed.currency,
                self.normalizer.detect_currency(cell_text(cell('currency'))),
            )

        return self.build_record(name, price, currency, **fields)
