"""Unit tests for followgraph.services.configs."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from followgraph.core.pool import PoolConfig
from followgraph.services.configs import (
    DEFAULT_RELAYS,
    EngineConfig,
    FanoutConfig,
    RelaysConfig,
    ScoringConfig,
)


class TestRelaysConfig:
    """Tests for RelaysConfig."""

    def test_defaults(self) -> None:
        config = RelaysConfig()
        assert [r.url for r in config.default_relays] == list(DEFAULT_RELAYS)

    def test_bootstrap_falls_back_to_defaults(self) -> None:
        config = RelaysConfig(defaults=["wss://a.example.com"])
        assert config.bootstrap_relays == config.default_relays

    def test_explicit_bootstrap(self) -> None:
        config = RelaysConfig(defaults=["wss://a.example.com"], bootstrap=["wss://b.example.com"])
        assert [r.url for r in config.bootstrap_relays] == ["wss://b.example.com"]

    def test_normalized(self) -> None:
        config = RelaysConfig(defaults=["WSS://A.Example.com:443/", "wss://a.example.com"])
        assert [r.url for r in config.default_relays] == ["wss://a.example.com"]

    @pytest.mark.parametrize("url", ["https://a.example.com", "wss://localhost", "not a url"])
    def test_invalid_url(self, url: str) -> None:
        with pytest.raises(ValidationError):
            RelaysConfig(defaults=[url])

    def test_empty_defaults_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RelaysConfig(defaults=[])


class TestSectionBounds:
    """Tests for numeric field constraints."""

    def test_fanout_defaults(self) -> None:
        config = FanoutConfig()
        assert config.query_timeout == 8.0
        assert config.first_timeout == 5.0
        assert config.max_filter_values == 250

    @pytest.mark.parametrize("days", [0, -1, 366])
    def test_window_days_bounds(self, days: int) -> None:
        with pytest.raises(ValidationError):
            ScoringConfig(window_days=days)

    def test_fanout_timeout_positive(self) -> None:
        with pytest.raises(ValidationError):
            FanoutConfig(query_timeout=0)


class TestEngineConfig:
    """Tests for EngineConfig."""

    def test_empty_is_valid(self) -> None:
        config = EngineConfig.model_validate({})
        assert config.scoring.window_days == 30
        assert config.publish.timeout == 10.0
        assert isinstance(config.pool, PoolConfig)
        assert config.keys_env == "PRIVATE_KEY"

    def test_partial_override(self) -> None:
        config = EngineConfig.model_validate({"scoring": {"window_days": 7}})
        assert config.scoring.window_days == 7
        assert config.fanout.query_timeout == 8.0
