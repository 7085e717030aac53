"""ESI (EVE Swagger Interface) client and response models."""

from charsync.esi.client import EsiClient, EsiResult
from charsync.esi.models import Location, Ship

__all__ = [
    "EsiClient",
    "EsiResult",
    "Location",
    "Ship",
]
