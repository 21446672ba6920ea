"""
General utility functions for the admitstats package.
"""

from typing import Any

import numpy as np


def round_to(n: float, digits: int = 0) -> float:
    """
    Round a number to a specific number of decimal places.

    Args:
        n: Number to round
        digits: Number of decimal digits to keep

    Returns:
        Rounded number
    """
    return round(float(n), digits)


def to_serializable(value: Any) -> Any:
    """
    Convert numpy containers and scalars into plain Python values.

    Args:
        value: Value possibly holding numpy types

    Returns:
        JSON-encodable equivalent
    """
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, dict):
        return {str(k): to_serializable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_serializable(v) for v in value]
    return value
