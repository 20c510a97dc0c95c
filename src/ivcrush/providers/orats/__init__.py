"""ORATS provider: actual earnings moves and implied earnings move.

Requires ORATS_API_TOKEN.
"""

from ivcrush.providers.orats.client import OratsClient

__all__ = [
    "OratsClient",
]
