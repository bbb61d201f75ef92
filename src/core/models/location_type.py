"""
LocationType enum for classified location identifiers.
"""

from enum import Enum


class LocationType(str, Enum):
    """
    Kind of location a location identifier refers to.

    Derived from the identifier (lookup table, pattern rules, prefixes),
    never stored authoritatively.
    """

    STORE = "STORE"
    DC = "DC"
    UNKNOWN = "UNKNOWN"
