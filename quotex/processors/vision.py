"""
Vision Extractor

Sends scanned quotes, photos and (optionally) PDFs to a multimodal model and
turns its JSON reply into records.

The model is reached through the VisionModel interface so tests and other
providers can stand in for Claude. Every field the model returns is
re-validated: prices go through the price normalizer, categories through the
category resolver, and each record's confidence is the lower of the model's
own figure and the weighted completeness score.

Hebrew and Arabic documents get extra checks, because right-to-left
rendering can reorder the characters of left-to-right part numbers.
"""

import asyncio
import base64
import io
import logging
import math
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

import anthropic
from PIL import Image, UnidentifiedImageError

from quotex.exceptions import ConfigurationError, VisionModelError
from quotex.models.extraction import (
    PRICE_FIELDS,
    Currency,
    DocumentPayload,
    ExtractedRecord,
    ExtractionResult,
    ExtractionWarning,
    ExtractorKind,
    WarningType,
)
from quotex.processors.base import BaseExtractor
from quotex.processors.llm.claude_service import (
    IMAGE_MEDIA_TYPES,
    PDF_MEDIA_TYPE,
    ClaudeLLMService,
    describe_api_error,
    parse_json_response,
)
from quotex.processors.llm.prompt_manager import PromptManager, get_prompt_manager

logger = logging.getLogger(__name__)

PIL_FORMATS = {
    'JPEG': 'image/jpeg',
    'PNG': 'image/png',
    'GIF': 'image/gif',
    'WEBP': 'image/webp',
}
EXTENSION_MEDIA_TYPES = {
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
    'png': 'image/png',
    'gif': 'image/gif',
    'webp': 'image/webp',
    'pdf': PDF_MEDIA_TYPE,
}

COLOR_PREFIXES = (
    'BLACK', 'BLUE', 'RED', 'WHITE', 'YELLOW', 'GREEN', 'ORANGE', 'BROWN', 'GRAY', 'GREY',
    'BK', 'BL', 'RD', 'WH', 'YE', 'GN', 'OR', 'BR', 'GY',
)
RTL_PENALTY_PER_WARNING = 0.1
RTL_MAX_PENALTY = 0.3
RTL_CONFIDENCE_FLOOR = 0.3


class VisionResponse(NamedTuple):
    text: str
    truncated: bool = False


class VisionModel(ABC):
    """Multimodal model that reads a document and answers a prompt"""

    @abstractmethod
    async def extract(
        self,
        data_b64: str,
        media_type: str,
        prompt: str,
        system_prompt: Optional[str] = None,
    ) -> VisionResponse:
        pass


class ClaudeVisionModel(VisionModel):
    """VisionModel backed by Claude"""

    def __init__(self, service: ClaudeLLMService):
        self.service = service

    async def extract(self, data_b64, media_type, prompt, system_prompt=None) -> VisionResponse:
        response = await self.service.generate_document_completion(
            data_b64=data_b64,
            media_type=media_type,
            prompt=prompt,
            system_prompt=system_prompt,
        )
        return VisionResponse(text=response.text, truncated=response.truncated)


def detect_media_type(payload: DocumentPayload) -> Tuple[Optional[str], Dict[str, Any]]:
    """Media type of the payload and basic image facts

    The content is inspected first; the declared type and extension are only
    trusted when the bytes cannot be identified.
    """
    if payload.data.startswith(b'%PDF'):
        return PDF_MEDIA_TYPE, {}
    try:
        with Image.open(io.BytesIO(payload.data)) as image:
            media_type = PIL_FORMATS.get(image.format or '')
            if media_type:
                return media_type, {'image_width': image.width, 'image_height': image.height}
    except (UnidentifiedImageError, OSError):
        pass
    if payload.content_type in IMAGE_MEDIA_TYPES or payload.content_type == PDF_MEDIA_TYPE:
        return payload.content_type, {}
    if payload.content_type == 'image/jpg':
        return 'image/jpeg', {}
    return EXTENSION_MEDIA_TYPES.get(payload.extension), {}


def detect_reversal(part_number: Optional[str]) -> Optional[str]:
    """Reason a part number looks reordered by right-to-left rendering, if it does"""
    if not part_number or len(part_number.strip()) < 3:
        return None
    original = part_number.strip()
    upper = original.upper()

    for color in COLOR_PREFIXES:
        if upper.startswith(color) and len(upper) > len(color) and upper[len(color)].isdigit():
            return f'Color "{color}" at start; it usually appears at the end'

    parts = original.split()
    if len(parts) == 2:
        first, second = parts
        if len(first) <= 3 and len(second) > len(first) and re.fullmatch(r'\d+[A-Z]+', second, re.IGNORECASE):
            return f'Short code "{first}" before model "{second}"; likely reversed'

    if re.match(r'^\d/\d', original):
        return 'Starts with a fraction; fractions usually follow the model number'

    match = re.fullmatch(r'[\d/\s-]+\s+(\d{3,})', original)
    if match:
        return f'Model "{match.group(1)}" at the end; it likely belongs at the start'

    if re.fullmatch(r'\d{2,4}[A-Z]{2,5}', original, re.IGNORECASE):
        return 'Digits before letters; might be reversed'

    match = re.fullmatch(r'([A-Za-z]{1,4})(\d[\d.]+)', original)
    if match:
        return f'Starts with "{match.group(1)}"; the letter group may have moved from the end'

    return None


class VisionExtractor(BaseExtractor):
    """Extracts records through a multimodal model"""

    kind = ExtractorKind.VISION

    def __init__(
        self,
        config=None,
        model: Optional[VisionModel] = None,
        prompt_manager: Optional[PromptManager] = None,
    ):
        super().__init__(config)
        self.model = model
        self.prompt_manager = prompt_manager or get_prompt_manager(self.config.llm.prompts_dir)

    def _get_model(self) -> VisionModel:
        if self.model is None:
            self.model = ClaudeVisionModel(ClaudeLLMService.from_settings(self.config.llm))
        return self.model

    def build_prompt(self) -> Tuple[str, str]:
        """System prompt and rendered user prompt"""
        system_prompt = self.prompt_manager.get_system_prompt('vision_extraction')
        user_prompt = self.prompt_manager.get_user_prompt(
            'vision_extraction',
            categories=self.categories.allowed,
            default_category=self.categories.default,
            currencies=[c.value for c in Currency],
        )
        return system_prompt, user_prompt

    async def extract(self, payload: DocumentPayload, timeout: Optional[float] = None) -> ExtractionResult:
        """Extract records from an image or PDF

        Args:
            payload: Document bytes and declared metadata
            timeout: Seconds to wait for the model; defaults to ``llm.vision_timeout``

        Returns:
            ExtractionResult; timeouts and model errors become failed results
        """
        media_type, image_info = detect_media_type(payload)
        if media_type is None:
            return self.failure(
                f"Unsupported file for vision extraction: {payload.filename or payload.content_type}. "
                f"Supported: {', '.join(IMAGE_MEDIA_TYPES + (PDF_MEDIA_TYPE,))}"
            )

        try:
            model = self._get_model()
        except ConfigurationError as e:
            return self.failure(str(e))

        system_prompt, prompt = self.build_prompt()
        data_b64 = base64.standard_b64encode(payload.data).decode('ascii')
        deadline = timeout if timeout is not None else self.config.llm.vision_timeout

        try:
            response = await asyncio.wait_for(
                model.extract(data_b64, media_type, prompt, system_prompt),
                timeout=deadline,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Vision extraction of {payload.filename} timed out after {deadline}s")
            return self.failure(f"Vision extraction timed out after {deadline} seconds")
        except anthropic.APIError as e:
            logger.error(f"Vision model call failed for {payload.filename}: {e}")
            return self.failure(describe_api_error(e))
        except VisionModelError as e:
            logger.error(f"Vision model call failed for {payload.filename}: {e}")
            return self.failure(f"Vision extraction failed: {e}")
        except Exception as e:
            logger.exception(f"Unexpected vision model error for {payload.filename}")
            return self.failure(f"Vision extraction failed: {e}")

        if response.truncated:
            return self.failure(
                "The document contains too many items and the model response was truncated. "
                "Split the document into smaller parts and try again."
            )

        result = self.parse_response(response.text)
        result.metadata.update({'media_type': media_type, **image_info})
        logger.info(
            f"Vision extracted {result.record_count} records from {payload.filename or media_type}"
        )
        return result

    def parse_response(self, text: str) -> ExtractionResult:
        """Turn the model's JSON reply into a result"""
        try:
            data = parse_json_response(text)
        except ValueError as e:
            logger.error(f"Failed to parse vision response: {e}; head: {text[:500]!r}")
            return self.failure(
                f"Failed to parse the model response: {e}. "
                "The response may have been malformed; try a smaller document."
            )

        items = data.get('records')
        if not isinstance(items, list):
            return self.failure("Invalid model response: missing records array")

        meta = data.get('metadata')
        if not isinstance(meta, dict):
            meta = {}
        document_currency = self.normalizer.detect_currency(meta.get('currency'))
        document_supplier = meta.get('supplier')
        if not isinstance(document_supplier, str) or not document_supplier.strip():
            document_supplier = None
        headers = meta.get('column_headers')
        column_headers = [str(h) for h in headers] if isinstance(headers, list) else []

        records: List[ExtractedRecord] = []
        for item in items:
            if not isinstance(item, dict):
                continue
            record = self.record_from_item(item, document_currency, document_supplier)
            if record is not None:
                records.append(record)

        is_rtl = bool(meta.get('is_rtl_document'))
        warnings = self.rtl_warnings(records) if is_rtl else []
        confidence = self.scorer.aggregate(r.confidence for r in records)
        reversals = sum(1 for w in warnings if w.type == WarningType.POTENTIAL_REVERSAL)
        if reversals:
            penalty = min(RTL_MAX_PENALTY, reversals * RTL_PENALTY_PER_WARNING)
            adjusted = min(confidence, max(RTL_CONFIDENCE_FLOOR, confidence - penalty))
            logger.info(
                f"Confidence adjusted from {confidence:.2f} to {adjusted:.2f} "
                f"for {reversals} possible part number reversal(s)"
            )
            confidence = adjusted

        metadata = {
            'document_type': data.get('document_type') or 'unknown',
            'supplier': document_supplier,
            'quote_date': meta.get('quote_date'),
            'currency': document_currency.value if document_currency else None,
            'column_headers': column_headers,
            'is_rtl_document': is_rtl,
            'total_items': len(records),
        }
        message = None if records else "The model found no line items in the document"
        return self.success(records, metadata, confidence, warnings, message)

    def record_from_item(
        self,
        item: Dict[str, Any],
        document_currency: Optional[Currency],
        document_supplier: Optional[str],
    ) -> Optional[ExtractedRecord]:
        name = str(item.get('name') or '').strip()
        if not name:
            return None

        item_currency = self.normalizer.detect_currency(item.get('currency'))
        amount = currency = None
        parsed = self.normalizer.parse(item.get('unit_price'))
        if parsed is not None:
            amount = parsed.amount
            currency = self.normalizer.resolve_currency(parsed.currency, item_currency, document_currency)
        else:
            for field_currency, field in PRICE_FIELDS.items():
                parsed = self.normalizer.parse(item.get(field))
                if parsed is not None:
                    amount, currency = parsed.amount, field_currency
                    break

        raw_category = item.get('category')
        record = self.build_record(
            name,
            amount,
            currency,
            manufacturer=item.get('manufacturer'),
            manufacturer_part_number=item.get('manufacturer_part_number'),
            category=self.categories.resolve(raw_category) if raw_category else None,
            supplier=item.get('supplier') or document_supplier,
            quantity=self.normalizer.parse_quantity(item.get('quantity')),
            notes=item.get('notes'),
        )
        if record is None:
            return None

        formula = self.scorer.score(record)
        reported = item.get('confidence')
        if isinstance(reported, (int, float)) and not isinstance(reported, bool) and math.isfinite(reported):
            confidence = min(max(float(reported), 0.0), 1.0, formula)
        else:
            confidence = formula
        return record.model_copy(update={'confidence': confidence})

    @staticmethod
    def rtl_warnings(records: List[ExtractedRecord]) -> List[ExtractionWarning]:
        warnings = [ExtractionWarning(
            type=WarningType.RTL_DOCUMENT,
            message="Right-to-left document detected. Review part numbers for reversed characters.",
            severity='info',
        )]
        for index, record in enumerate(records):
            reason = detect_reversal(record.manufacturer_part_number)
            if reason:
                warnings.append(ExtractionWarning(
                    type=WarningType.POTENTIAL_REVERSAL,
                    message=f'Record {index + 1} "{record.manufacturer_part_number}": {reason}',
                    record_index=index,
                ))
        for w in warnings[1:]:
            logger.warning(f"RTL check: {w.message}")
        return warnings
