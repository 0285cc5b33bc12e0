"""Engine-wide constants.

Amounts, prices and rates are integers scaled by ONE (18 decimals).
"""

# Fixed-point scale: 1.0 == 10**18
ONE = 10**18
ONE2 = 10**36

# Largest value an intermediate may reach (matches on-chain uint256)
UINT256_MAX = 2**256 - 1
