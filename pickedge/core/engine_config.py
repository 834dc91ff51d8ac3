"""Engine configuration: every tunable constant in one place.

Nowhere else in the codebase should the push threshold, the edge shrinkage
multiplier, tier cutoffs or the Kelly fraction be hard-coded.

:class:`EngineConfig` is a frozen dataclass.  :meth:`EngineConfig.from_env`
reads overrides from the environment (after loading ``.env``); anything not
set falls back to the defaults below.

Typical usage::

    from pickedge.core.engine_config import EngineConfig

    cfg = EngineConfig.from_env()

    # Override a single constant for an experiment:
    from dataclasses import replace
    strict_cfg = replace(cfg, edge_shrinkage=0.2)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final

from dotenv import load_dotenv

#: Distance from the line under which a spread or total grades as a push.
DEFAULT_PUSH_THRESHOLD: Final[float] = 0.5

#: Multiplier applied to the raw simulator edge before it is published.
DEFAULT_EDGE_SHRINKAGE: Final[float] = 0.3

#: Unshrunk edge (percent) above which a market is a "Strong" play.
DEFAULT_STRONG_EDGE_PCT: Final[float] = 10.0

#: Unshrunk edge (percent) above which a market is a "Moderate" play.
DEFAULT_MODERATE_EDGE_PCT: Final[float] = 5.0

#: Fractional Kelly multiplier for stake suggestions.
DEFAULT_KELLY_FRACTION: Final[float] = 0.25

#: rapidfuzz score cutoff for canonical team-name lookup.
DEFAULT_FUZZY_SCORE_CUTOFF: Final[int] = 85


@dataclass(frozen=True)
class EngineConfig:
    """Immutable bundle of engine constants.

    Attributes:
        push_threshold: ``|margin| < push_threshold`` grades as a push for
            spread and total markets.  Whole-number lines can land exactly;
            half-point lines never push.
        edge_shrinkage: Multiplier applied to the raw edge before it is
            stored and displayed.  Simulator probabilities are overconfident
            relative to closing prices; the published number is shrunk.
        strong_edge_pct: Tier cutoff on the *unshrunk* edge.
        moderate_edge_pct: Tier cutoff on the *unshrunk* edge.
        kelly_fraction: Fractional Kelly multiplier for stake suggestions.
        fuzzy_score_cutoff: Minimum rapidfuzz score for a canonical team-name
            match.
    """

    push_threshold: float = DEFAULT_PUSH_THRESHOLD
    edge_shrinkage: float = DEFAULT_EDGE_SHRINKAGE
    strong_edge_pct: float = DEFAULT_STRONG_EDGE_PCT
    moderate_edge_pct: float = DEFAULT_MODERATE_EDGE_PCT
    kelly_fraction: float = DEFAULT_KELLY_FRACTION
    fuzzy_score_cutoff: int = DEFAULT_FUZZY_SCORE_CUTOFF

    def __post_init__(self) -> None:
        if self.push_threshold < 0:
            raise ValueError(f"push_threshold must be ≥ 0, got {self.push_threshold!r}")
        if not (0.0 <= self.edge_shrinkage <= 1.0):
            raise ValueError(f"edge_shrinkage must be in [0, 1], got {self.edge_shrinkage!r}")
        if self.moderate_edge_pct > self.strong_edge_pct:
            raise ValueError("moderate_edge_pct cannot exceed strong_edge_pct")
        if not (0.0 < self.kelly_fraction <= 1.0):
            raise ValueError(f"kelly_fraction must be in (0, 1], got {self.kelly_fraction!r}")

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Build a config from environment variables, falling back to defaults."""
        load_dotenv()
        return cls(
            push_threshold=float(os.getenv("PUSH_THRESHOLD", DEFAULT_PUSH_THRESHOLD)),
            edge_shrinkage=float(os.getenv("EDGE_SHRINKAGE", DEFAULT_EDGE_SHRINKAGE)),
            strong_edge_pct=float(os.getenv("STRONG_EDGE_PCT", DEFAULT_STRONG_EDGE_PCT)),
            moderate_edge_pct=float(os.getenv("MODERATE_EDGE_PCT", DEFAULT_MODERATE_EDGE_PCT)),
            kelly_fraction=float(os.getenv("KELLY_FRACTION", DEFAULT_KELLY_FRACTION)),
            fuzzy_score_cutoff=int(os.getenv("FUZZY_SCORE_CUTOFF", DEFAULT_FUZZY_SCORE_CUTOFF)),
        )


_default_config: EngineConfig | None = None


def get_engine_config() -> EngineConfig:
    """Process-wide config, built from the environment on first use."""
    global _default_config
    if _default_config is None:
        _default_config = EngineConfig.from_env()
    return _default_config
