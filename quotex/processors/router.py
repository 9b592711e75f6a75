"""
Extraction Router

Single entry point for document extraction. Chooses exactly one extractor
per document from the declared content type, then the filename extension,
then the leading bytes, and always returns an ExtractionResult.
"""

import logging
from typing import Dict, List, Optional

from quotex.config.quotex_config import QuotexConfig
from quotex.models.extraction import DocumentPayload, ExtractionResult, ExtractorKind
from quotex.processors.base import BaseExtractor
from quotex.processors.tabular import OLE_SIGNATURE, ZIP_SIGNATURE, TabularExtractor
from quotex.processors.text_pattern import PDF_SIGNATURE, TextPatternExtractor
from quotex.processors.vision import VisionExtractor, VisionModel

logger = logging.getLogger(__name__)

BYTES_PER_MB = 1024 * 1024

SPREADSHEET_EXTENSIONS = ('xlsx', 'xls', 'csv')
TEXT_EXTENSIONS = ('txt',)
IMAGE_EXTENSIONS = ('jpg', 'jpeg', 'png', 'gif', 'webp')

SUPPORTED_CONTENT_TYPES = (
    'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    'application/vnd.ms-excel',
    'text/csv',
    'application/csv',
    'application/pdf',
    'text/plain',
    'image/jpeg',
    'image/png',
    'image/gif',
    'image/webp',
)

EXTRACTOR_NAMES = {
    ExtractorKind.TABULAR: {'en': 'Excel Parser', 'he': 'מנתח Excel'},
    ExtractorKind.TEXT_PATTERN: {'en': 'PDF Parser', 'he': 'מנתח PDF'},
    ExtractorKind.VISION: {'en': 'AI Vision', 'he': 'AI Vision'},
    ExtractorKind.UNRECOGNIZED: {'en': 'Unknown', 'he': 'לא ידוע'},
}

UNSUPPORTED_MESSAGE = (
    "Unsupported file type: {what}\n\n"
    "Supported formats:\n"
    "- Spreadsheets: .xlsx, .xls, .csv\n"
    "- PDF: .pdf\n"
    "- Text: .txt\n"
    "- Images: .jpg, .jpeg, .png, .gif, .webp"
)


class ExtractionRouter:
    """Dispatches documents to the tabular, text-pattern or vision extractor"""

    def __init__(
        self,
        config: Optional[QuotexConfig] = None,
        vision_model: Optional[VisionModel] = None,
        extractors: Optional[Dict[ExtractorKind, BaseExtractor]] = None,
    ):
        """
        Args:
            config: quotex configuration
            vision_model: Model used by the vision extractor (Claude when omitted)
            extractors: Replacement extractors keyed by kind
        """
        self.config = config or QuotexConfig.default()
        self.extractors: Dict[ExtractorKind, BaseExtractor] = {
            ExtractorKind.TABULAR: TabularExtractor(self.config),
            ExtractorKind.TEXT_PATTERN: TextPatternExtractor(self.config),
            ExtractorKind.VISION: VisionExtractor(self.config, model=vision_model),
        }
        if extractors:
            self.extractors.update(extractors)

    @property
    def pdf_kind(self) -> ExtractorKind:
        return ExtractorKind(self.config.router.pdf_strategy)

    def resolve(self, content_type: Optional[str], filename: Optional[str], data: bytes = b'') -> ExtractorKind:
        """Pick the extractor for a document"""
        for kind in (
            self._by_content_type((content_type or '').strip().lower()),
            self._by_extension(filename or ''),
            self._by_signature(data or b''),
        ):
            if kind is not None:
                return kind
        return ExtractorKind.UNRECOGNIZED

    def _by_content_type(self, content_type: str) -> Optional[ExtractorKind]:
        if not content_type:
            return None
        if any(token in content_type for token in ('excel', 'spreadsheet', 'csv')):
            return ExtractorKind.TABULAR
        if 'pdf' in content_type:
            return self.pdf_kind
        if content_type.startswith('text/plain'):
            return ExtractorKind.TEXT_PATTERN
        if content_type.startswith('image/'):
            return ExtractorKind.VISION
        return None

    def _by_extension(self, filename: str) -> Optional[ExtractorKind]:
        name = filename.strip().lower()
        if '.' not in name:
            return None
        extension = name.rsplit('.', 1)[-1]
        if extension in SPREADSHEET_EXTENSIONS:
            return ExtractorKind.TABULAR
        if extension == 'pdf':
            return self.pdf_kind
        if extension in TEXT_EXTENSIONS:
            return ExtractorKind.TEXT_PATTERN
        if extension in IMAGE_EXTENSIONS:
            return ExtractorKind.VISION
        return None

    def _by_signature(self, data: bytes) -> Optional[ExtractorKind]:
        if data.startswith(PDF_SIGNATURE):
            return self.pdf_kind
        if data.startswith(ZIP_SIGNATURE) or data.startswith(OLE_SIGNATURE):
            return ExtractorKind.TABULAR
        if (data.startswith(b'\x89PNG\r\n\x1a\n') or data.startswith(b'\xff\xd8\xff')
                or data.startswith(b'GIF87a') or data.startswith(b'GIF89a')
                or (data.startswith(b'RIFF') and data[8:12] == b'WEBP')):
            return ExtractorKind.VISION
        return None

    async def extract(self, payload: DocumentPayload, timeout: Optional[float] = None) -> ExtractionResult:
        """Extract records from a document

        Args:
            payload: Document bytes and declared metadata
            timeout: Deadline in seconds for model-backed extraction

        Returns:
            ExtractionResult; never raises
        """
        kind = self.resolve(payload.content_type, payload.filename, payload.data)
        logger.info(f"Routing {payload.filename or '<unnamed>'} ({payload.content_type}) to {kind.value}")

        if kind == ExtractorKind.UNRECOGNIZED:
            what = payload.content_type or payload.filename or 'unknown'
            return ExtractionResult.failure(
                UNSUPPORTED_MESSAGE.format(what=what), extractor=ExtractorKind.UNRECOGNIZED
            )

        extractor = self.extractors[kind]
        try:
            if kind == ExtractorKind.VISION:
                result = await extractor.extract(payload, timeout=timeout)
            else:
                result = await extractor.extract(payload)
        except Exception as e:
            logger.exception(f"Extractor {kind.value} failed on {payload.filename}")
            return ExtractionResult.failure(f"Failed to parse document: {e}", extractor=kind)

        result.metadata.setdefault('file_name', payload.filename)
        result.metadata.setdefault('file_size', payload.size_bytes)
        return result

    def estimate_processing_time_ms(self, kind: ExtractorKind, size_bytes: int) -> int:
        """Rough processing time for progress feedback"""
        if kind == ExtractorKind.UNRECOGNIZED:
            return 0
        estimate = self.config.router.estimates.get(kind.value)
        if estimate is None:
            return 0
        size_mb = max(size_bytes, 0) / BYTES_PER_MB
        return int(min(estimate.cap_ms, estimate.base_ms + size_mb * estimate.per_mb_ms))

    def estimate_for(self, payload: DocumentPayload) -> int:
        kind = self.resolve(payload.content_type, payload.filename, payload.data)
        return self.estimate_processing_time_ms(kind, payload.size_bytes)

    @staticmethod
    def extractor_name(kind: ExtractorKind, language: str = 'en') -> str:
        names = EXTRACTOR_NAMES[ExtractorKind(kind)]
        return names.get(language, names['en'])

    @staticmethod
    def supported_extensions() -> List[str]:
        return [f'.{ext}' for ext in SPREADSHEET_EXTENSIONS + ('pdf',) + TEXT_EXTENSIONS + IMAGE_EXTENSIONS]

    @staticmethod
    def supported_content_types() -> List[str]:
        return list(SUPPORTED_CONTENT_TYPES)

    def is_supported(self, content_type: Optional[str], filename: Optional[str]) -> bool:
        return self.resolve(content_type, filename) != ExtractorKind.UNRECOGNIZED
