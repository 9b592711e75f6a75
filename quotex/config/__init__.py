"""
quotex configuration package
"""

from quotex.config.quotex_config import (
    CANONICAL_FIELDS,
    QuotexConfig,
    deep_update,
    setup_logging,
)

__all__ = ['CANONICAL_FIELDS', 'QuotexConfig', 'deep_update', 'setup_logging']
