"""Core mathematics and configuration for the Pick Edge engine.

This package contains pure, market-agnostic building blocks:

- ``odds_math``    : American/decimal/implied-probability conversion, edge
- ``kelly``        : Kelly criterion stake sizing
- ``engine_config``: push threshold, edge shrinkage, tier cutoffs
- ``nfl_weeks``    : season schedule used to derive a pick's week

Nothing in this package imports from ``pickedge.services`` or ``pickedge.models``.
All modules are side-effect-free apart from warning logs on invalid input.
"""
