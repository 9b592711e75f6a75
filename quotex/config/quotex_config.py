"""
quotex Configuration

Loads the packaged default configuration, merges user overrides and exposes
the result as immutable, validated settings objects. Components receive the
settings they need at construction time.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from quotex.exceptions import ConfigurationError
from quotex.models.extraction import Currency

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / 'default_config.yaml'
USER_CONFIG_PATH = Path.home() / '.quotex' / 'config.yaml'

CANONICAL_FIELDS = (
    'name', 'manufacturer', 'part_number', 'price', 'category',
    'quantity', 'description', 'supplier', 'currency',
)


def deep_update(d: Dict[str, Any], u: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``u`` into ``d`` and return ``d``"""
    for k, v in u.items():
        if isinstance(v, dict) and k in d and isinstance(d[k], dict):
            d[k] = deep_update(d[k], v)
        else:
            d[k] = v
    return d


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra='forbid')


class CategorySettings(_Frozen):
    """Category allow-list and keyword remapping rules"""
    default: str = 'Other'
    allowed: Tuple[str, ...]
    keywords: Dict[str, Tuple[str, ...]] = Field(default_factory=dict)

    @model_validator(mode='after')
    def check_categories(self) -> 'CategorySettings':
        if self.default not in self.allowed:
            raise ValueError(f"Default category '{self.default}' is not in the allowed list")
        unknown = [c for c in self.keywords if c not in self.allowed]
        if unknown:
            raise ValueError(f"Keyword rules reference unknown categories: {unknown}")
        return self


class CurrencySettings(_Frozen):
    """Default currency and detection tokens, in detection order"""
    default: Currency = Currency.USD
    tokens: Dict[Currency, Tuple[str, ...]]

    def all_tokens(self) -> List[str]:
        """All tokens, longest first so multi-character tokens strip cleanly"""
        tokens = [t for group in self.tokens.values() for t in group]
        return sorted(set(tokens), key=len, reverse=True)


class ConfidenceSettings(_Frozen):
    weights: Dict[str, float]
    text_pattern_cap: float = Field(0.9, ge=0.0, le=1.0)
    low_confidence_threshold: float = Field(0.5, ge=0.0, le=1.0)

    @field_validator('weights')
    @classmethod
    def check_weights(cls, v: Dict[str, float]) -> Dict[str, float]:
        if any(w < 0 for w in v.values()) or sum(v.values()) <= 0:
            raise ValueError("Confidence weights must be non-negative with a positive total")
        return v


class MatchingSettings(_Frozen):
    exact_confidence: float = 1.0
    fuzzy_high: float = 0.9
    fuzzy_borderline: float = 0.7
    semantic_accept: float = 0.85
    supplier_divergence: float = 0.7
    max_semantic_candidates: int = Field(3, ge=0)
    semantic_timeout: Optional[float] = 30
    weights: Dict[str, float] = Field(
        default_factory=lambda: {'part_number': 0.5, 'manufacturer': 0.3, 'name': 0.2}
    )

    @model_validator(mode='after')
    def check_thresholds(self) -> 'MatchingSettings':
        if not 0.0 <= self.fuzzy_borderline <= self.fuzzy_high <= 1.0:
            raise ValueError("Fuzzy thresholds must satisfy 0 <= borderline <= high <= 1")
        return self


class TimeEstimate(_Frozen):
    base_ms: int
    per_mb_ms: int = 0
    cap_ms: int


class RouterSettings(_Frozen):
    pdf_strategy: str = 'text_pattern'
    estimates: Dict[str, TimeEstimate]

    @field_validator('pdf_strategy')
    @classmethod
    def check_strategy(cls, v: str) -> str:
        if v not in ('text_pattern', 'vision'):
            raise ValueError("pdf_strategy must be 'text_pattern' or 'vision'")
        return v


class LLMSettings(_Frozen):
    provider: str = 'anthropic'
    model: str = 'claude-sonnet-4-20250514'
    api_key_env: str = 'ANTHROPIC_API_KEY'
    max_tokens: int = 16384
    temperature: float = 0.0
    vision_timeout: Optional[float] = 120
    semantic_max_tokens: int = 512
    prompts_dir: Optional[str] = None


class ExchangeRateSettings(_Frozen):
    usd_to_nis: float = Field(3.7, gt=0)
    eur_to_nis: float = Field(4.0, gt=0)


class LoggingSettings(_Frozen):
    level: str = 'INFO'
    format: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    file: Optional[str] = None


class QuotexConfig(_Frozen):
    """
    Complete quotex configuration

    Build with ``QuotexConfig.load()`` to merge the packaged defaults with
    user files, or ``QuotexConfig.default()`` for the packaged defaults only.
    """
    categories: CategorySettings
    fields: Dict[str, Tuple[str, ...]]
    currencies: CurrencySettings
    confidence: ConfidenceSettings
    matching: MatchingSettings
    router: RouterSettings
    llm: LLMSettings
    exchange_rates: ExchangeRateSettings
    logging: LoggingSettings

    @field_validator('fields')
    @classmethod
    def check_fields(cls, v: Dict[str, Tuple[str, ...]]) -> Dict[str, Tuple[str, ...]]:
        unknown = [f for f in v if f not in CANONICAL_FIELDS]
        if unknown:
            raise ValueError(f"Unknown canonical fields: {unknown}")
        return v

    @classmethod
    def load(
        cls,
        config_path: Optional[Union[str, Path]] = None,
        include_user_config: bool = True,
        **overrides: Any,
    ) -> 'QuotexConfig':
        """Load configuration

        Args:
            config_path: Optional configuration file merged over the defaults
            include_user_config: Merge ``~/.quotex/config.yaml`` when it exists
            **overrides: Section dictionaries merged last

        Returns:
            QuotexConfig instance

        Raises:
            ConfigurationError: If a file cannot be read or the result is invalid
        """
        data = _read_yaml(DEFAULT_CONFIG_PATH)
        if include_user_config and USER_CONFIG_PATH.exists():
            deep_update(data, _read_yaml(USER_CONFIG_PATH))
            logger.info(f"Configuration loaded from {USER_CONFIG_PATH}")
        if config_path:
            deep_update(data, _read_yaml(Path(config_path)))
            logger.info(f"Configuration loaded from {config_path}")
        if overrides:
            deep_update(data, overrides)
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    @classmethod
    def default(cls) -> 'QuotexConfig':
        """Packaged defaults, ignoring user configuration files"""
        global _default_config
        if _default_config is None:
            _default_config = cls.load(include_user_config=False)
        return _default_config

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value using dot notation (e.g. 'matching.fuzzy_high')"""
        value: Any = self
        try:
            for k in key.split('.'):
                if isinstance(value, BaseModel):
                    if k not in type(value).model_fields:
                        return default
                    value = getattr(value, k)
                else:
                    value = value[k]
            return value
        except (KeyError, TypeError):
            return default


_default_config: Optional[QuotexConfig] = None


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Configuration file not found: {path}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a mapping")
    return data


def setup_logging(config: Optional[QuotexConfig] = None, level: Optional[str] = None) -> None:
    """Configure root logging from the ``logging`` section"""
    settings = (config or QuotexConfig.default()).logging
    log_level = getattr(logging, (level or settings.level).upper(), logging.INFO)
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if settings.file:
        log_path = Path(settings.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding='utf-8'))
    logging.basicConfig(level=log_level, format=settings.format, handlers=handlers, force=True)
