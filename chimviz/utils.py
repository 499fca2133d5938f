"""
Utility functions

General-purpose helpers used across chimviz modules.
"""

from __future__ import annotations
from typing import Any, Optional
import math


def is_missing(value: Any) -> bool:
    """
    Check whether a coordinate or count is unusable

    Args:
        value: Number parsed from an input file

    Returns:
        True for None, NaN and infinite values
    """
    if value is None:
        return True
    try:
        return not math.isfinite(value)
    except TypeError:
        return True


def midpoint(a: float, b: float) -> float:
    """Midpoint of two coordinates given in any order"""
    if a > b:
        a, b = b, a
    return (a + b) / 2


def get_attribute(attributes: str, key: str) -> Optional[str]:
    """
    Extract a value from a GTF attribute column

    Args:
        attributes: Attribute string, e.g. 'gene_id "g1"; transcript_id "t1";'
        key: Attribute name

    Returns:
        Stripped value, or None if the key is absent or unterminated

    Example:
        >>> get_attribute('gene_id "g1"; gene_name "tat";', 'gene_name')
        'tat'
    """
    start_token = f'{key} "'
    start = attributes.find(start_token)
    if start == -1:
        return None
    end = attributes.find('";', start)
    if end == -1:
        return None
    return attributes[start + len(start_token):end].strip()
