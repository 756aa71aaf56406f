"""Domain constants shared by validation, the API boundary and comparison.

The supported currency set is closed; anything outside it is rejected before
it reaches the rate store.
"""

from typing import FrozenSet, Tuple

SUPPORTED_CURRENCIES: Tuple[str, ...] = ("PKR", "INR", "BDT", "PHP", "NPR", "LKR")
SUPPORTED_CURRENCY_SET: FrozenSet[str] = frozenset(SUPPORTED_CURRENCIES)

PROVIDER_MIN_LENGTH = 2
PROVIDER_MAX_LENGTH = 100

RATE_DECIMAL_PLACES = 4
# 10 integer digits + 4 decimals stays within a double's exact range
RATE_MAX = 10_000_000_000
