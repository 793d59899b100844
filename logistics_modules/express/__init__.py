"""
Express Module.

Single parcels priced by weight, carried by trip within a wave.
"""

from logistics_modules.express.models import Parcel, ParcelStatus
from logistics_modules.express.workflows import (
    PARCEL_KIND,
    PARCEL_WORKFLOW,
    TRIP_KIND,
    TRIP_WORKFLOW,
    WAVE_KIND,
    WAVE_WORKFLOW,
)

__all__ = [
    "PARCEL_KIND",
    "PARCEL_WORKFLOW",
    "Parcel",
    "ParcelStatus",
    "TRIP_KIND",
    "TRIP_WORKFLOW",
    "WAVE_KIND",
    "WAVE_WORKFLOW",
]
