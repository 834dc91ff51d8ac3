"""Tests for EngineConfig defaults, validation and environment overrides."""

from dataclasses import FrozenInstanceError, replace

import pytest

from pickedge.core.engine_config import EngineConfig


class TestDefaults:
    def test_values(self):
        cfg = EngineConfig()
        assert cfg.push_threshold == 0.5
        assert cfg.edge_shrinkage == 0.3
        assert cfg.strong_edge_pct == 10.0
        assert cfg.moderate_edge_pct == 5.0
        assert cfg.kelly_fraction == 0.25
        assert cfg.fuzzy_score_cutoff == 85

    def test_frozen(self):
        cfg = EngineConfig()
        with pytest.raises(FrozenInstanceError):
            cfg.edge_shrinkage = 0.5

    def test_replace_single_field(self):
        cfg = replace(EngineConfig(), edge_shrinkage=0.2)
        assert cfg.edge_shrinkage == 0.2
        assert cfg.push_threshold == 0.5


class TestValidation:
    @pytest.mark.parametrize("kwargs", [
        {"push_threshold": -0.1},
        {"edge_shrinkage": 1.5},
        {"edge_shrinkage": -0.1},
        {"moderate_edge_pct": 12.0, "strong_edge_pct": 10.0},
        {"kelly_fraction": 0.0},
        {"kelly_fraction": 1.2},
    ])
    def test_rejects_bad_values(self, kwargs):
        with pytest.raises(ValueError):
            EngineConfig(**kwargs)


class TestFromEnv:
    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("EDGE_SHRINKAGE", "0.4")
        monkeypatch.setenv("PUSH_THRESHOLD", "0.25")
        monkeypatch.setenv("FUZZY_SCORE_CUTOFF", "90")
        cfg = EngineConfig.from_env()
        assert cfg.edge_shrinkage == pytest.approx(0.4)
        assert cfg.push_threshold == pytest.approx(0.25)
        assert cfg.fuzzy_score_cutoff == 90

    def test_unset_falls_back(self, monkeypatch):
        for name in ("PUSH_THRESHOLD", "EDGE_SHRINKAGE", "STRONG_EDGE_PCT",
                     "MODERATE_EDGE_PCT", "KELLY_FRACTION", "FUZZY_SCORE_CUTOFF"):
            monkeypatch.delenv(name, raising=False)
        assert EngineConfig.from_env() == EngineConfig()
