"""Chain classification derived once at startup."""

from .profile import (
    ALTERNATE_CHAIN_IDS,
    UNKNOWN_CHAIN_ID,
    ChainProfile,
    detect_chain_profile,
)

__all__ = [
    "ALTERNATE_CHAIN_IDS",
    "UNKNOWN_CHAIN_ID",
    "ChainProfile",
    "detect_chain_profile",
]
