"""Test helpers module for shared test utilities.

This module consolidates common test utilities to reduce duplication:
- constants: Reference pool parameters and fee rates
- factories: Parameter, snapshot and pool factory functions
"""

from tests.helpers.constants import (
    BASE_RESERVE,
    LP_FEE_RATE,
    MT_FEE_RATE,
    ONE,
    QUOTE_RESERVE,
    REFERENCE_PRICE,
    SLIPPAGE_K,
)
from tests.helpers.factories import make_params, make_pool, make_state

__all__ = [
    # Constants
    "ONE",
    "BASE_RESERVE",
    "QUOTE_RESERVE",
    "REFERENCE_PRICE",
    "SLIPPAGE_K",
    "LP_FEE_RATE",
    "MT_FEE_RATE",
    # Factories
    "make_params",
    "make_state",
    "make_pool",
]
