"""
Tests for configuration loading
"""

import logging

import pytest
import yaml
from pydantic import ValidationError

from quotex.config import QuotexConfig
from quotex.config.quotex_config import deep_update, setup_logging
from quotex.exceptions import ConfigurationError
from quotex.models import Currency


class TestQuotexConfig:
    """Test the packaged defaults and overrides"""

    def test_defaults(self, config):
        """Test packaged default values"""
        assert config.categories.default == 'Other'
        assert config.categories.default in config.categories.allowed
        assert list(config.fields)[0] == 'name'
        assert list(config.currencies.tokens) == [Currency.USD, Currency.EUR, Currency.NIS]
        assert config.currencies.default == Currency.USD
        assert config.confidence.text_pattern_cap == 0.9
        assert config.router.pdf_strategy == 'text_pattern'

    def test_default_is_cached(self):
        """Test the packaged defaults are loaded once"""
        assert QuotexConfig.default() is QuotexConfig.default()

    def test_dot_notation(self, config):
        """Test dotted lookups"""
        assert config.get('matching.fuzzy_high') == 0.9
        assert config.get('matching.weights.part_number') == 0.5
        assert config.get('missing.key', 'fallback') == 'fallback'

    def test_file_override(self, tmp_path):
        """Test a configuration file is merged over the defaults"""
        path = tmp_path / 'config.yaml'
        path.write_text(yaml.safe_dump({'matching': {'fuzzy_high': 0.95}}), encoding='utf-8')
        config = QuotexConfig.load(path, include_user_config=False)
        assert config.matching.fuzzy_high == 0.95
        assert config.matching.fuzzy_borderline == 0.7

    def test_user_config(self, tmp_path, monkeypatch):
        """Test the user configuration file is merged when present"""
        path = tmp_path / 'user.yaml'
        path.write_text(yaml.safe_dump({'exchange_rates': {'usd_to_nis': 3.6}}), encoding='utf-8')
        monkeypatch.setattr('quotex.config.quotex_config.USER_CONFIG_PATH', path)
        assert QuotexConfig.load().exchange_rates.usd_to_nis == 3.6
        assert QuotexConfig.load(include_user_config=False).exchange_rates.usd_to_nis == 3.7

    def test_invalid_default_category(self):
        """Test a default category outside the allowed list is rejected"""
        with pytest.raises(ConfigurationError):
            QuotexConfig.load(include_user_config=False, categories={'default': 'Nope'})

    def test_invalid_thresholds(self):
        """Test the borderline threshold must stay below the high threshold"""
        with pytest.raises(ConfigurationError):
            QuotexConfig.load(include_user_config=False, matching={'fuzzy_borderline': 0.95})

    def test_invalid_pdf_strategy(self):
        """Test unknown PDF strategies are rejected"""
        with pytest.raises(ConfigurationError):
            QuotexConfig.load(include_user_config=False, router={'pdf_strategy': 'ocr'})

    def test_malformed_yaml(self, tmp_path):
        """Test unreadable YAML raises ConfigurationError"""
        path = tmp_path / 'bad.yaml'
        path.write_text('matching: [unclosed', encoding='utf-8')
        with pytest.raises(ConfigurationError):
            QuotexConfig.load(path, include_user_config=False)

    def test_missing_file(self, tmp_path):
        """Test a missing configuration file raises ConfigurationError"""
        with pytest.raises(ConfigurationError):
            QuotexConfig.load(tmp_path / 'absent.yaml', include_user_config=False)

    def test_settings_are_immutable(self, config):
        """Test settings cannot be changed after loading"""
        with pytest.raises(ValidationError):
            config.matching.fuzzy_high = 0.5

    def test_deep_update(self):
        """Test nested dictionaries are merged"""
        base = {'a': {'b': 1, 'c': 2}, 'd': 3}
        assert deep_update(base, {'a': {'b': 5}, 'e': 6}) == {'a': {'b': 5, 'c': 2}, 'd': 3, 'e': 6}


class TestSetupLogging:
    """Test logging setup"""

    def test_level_override(self, config):
        """Test an explicit level wins over the configured one"""
        setup_logging(config, level='ERROR')
        assert logging.getLogger().level == logging.ERROR
        setup_logging(config)
        assert logging.getLogger().level == logging.INFO
