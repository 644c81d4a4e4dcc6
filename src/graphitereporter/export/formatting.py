"""Value formatting for the plaintext protocol.

Carbon's plaintext format is loosely specified; it expects US-formatted
digits, so formatting never goes through the locale.
"""

import math
from numbers import Integral, Real
from typing import Any, Optional

import numpy as np


def format_value(value: Any) -> Optional[str]:
    """Render a value for the wire.

    Integers render as plain decimal integers, floats with exactly two
    decimals. Returns None for anything that has no numeric representation
    (None, bool, strings, NaN/inf), which callers skip.
    """
    if isinstance(value, np.generic):
        value = value.item()

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Integral):
        return str(int(value))
    if isinstance(value, Real):
        value = float(value)
        if not math.isfinite(value):
            return None
        return "%.2f" % value
    return None
