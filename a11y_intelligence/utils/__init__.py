"""
A11y Intelligence Utilities.

Shared numeric helpers for the scoring services.
"""

from .numeric import round_half_up, clamp

__all__ = [
    'round_half_up',
    'clamp',
]
