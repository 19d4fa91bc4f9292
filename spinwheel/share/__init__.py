"""
Share Module - Shareable wheel configurations.
"""

from .codec import (
    SharedState,
    encode,
    decode,
    try_decode,
    build_share_link,
    token_from_link,
)

__all__ = [
    "SharedState",
    "encode",
    "decode",
    "try_decode",
    "build_share_link",
    "token_from_link",
]
