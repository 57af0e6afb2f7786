# src/core/riders/__init__.py
"""
Справочник курьеров.
"""

from src.core.riders.models import Rider, RiderPublic, RiderCreateDTO
from src.core.riders.service import RiderService

__all__ = [
    "Rider",
    "RiderPublic",
    "RiderCreateDTO",
    "RiderService",
]
