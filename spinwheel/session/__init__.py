"""
Session Module - The spin lifecycle.

A spin is selected first and recorded later, once the wheel has
finished animating. The session keeps the wheel's accumulated rotation
between spins.
"""

from .spin import SpinSession, SpinPlan

__all__ = [
    "SpinSession",
    "SpinPlan",
]
