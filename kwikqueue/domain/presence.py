"""Customer presence validation against the store location"""

import asyncio
import math
from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import BaseModel

from kwikqueue.domain.errors import GeolocationDenied, GeolocationUnavailable, OutOfRange

EARTH_RADIUS_METERS = 6371e3


class Coordinates(BaseModel):
    lat: float
    lng: float


def distance_meters(a: Coordinates, b: Coordinates) -> float:
    """Great-circle (haversine) distance between two points"""
    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    d_phi = math.radians(b.lat - a.lat)
    d_lambda = math.radians(b.lng - a.lng)

    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


class GeolocationAdapter(ABC):
    """Source of the customer's current position"""

    @abstractmethod
    async def get_current_position(self) -> Coordinates:
        """Return coordinates or raise GeolocationDenied / GeolocationUnavailable"""
        pass


class ClientReportedPosition(GeolocationAdapter):
    """Position captured by the customer's device and sent with the request"""

    def __init__(self, coords: Optional[Coordinates] = None, error: Optional[str] = None):
        self.coords = coords
        self.error = error

    async def get_current_position(self) -> Coordinates:
        if self.error == "permission_denied":
            raise GeolocationDenied()
        if self.error or self.coords is None:
            raise GeolocationUnavailable()
        return self.coords


async def locate(adapter: GeolocationAdapter, timeout_seconds: float) -> Coordinates:
    """Bounded position lookup; a hung adapter surfaces as unavailable"""
    try:
        return await asyncio.wait_for(adapter.get_current_position(), timeout=timeout_seconds)
    except asyncio.TimeoutError:
        raise GeolocationUnavailable("Timed out while determining your location.")


def verify_presence(
    company: Any,
    position: Coordinates,
    radius_meters: float,
) -> float:
    """Raise OutOfRange unless `position` is within the store radius"""
    store = Coordinates(lat=company.lat, lng=company.lng)
    distance = distance_meters(position, store)
    if distance > radius_meters:
        raise OutOfRange(distance, radius_meters)
    return distance


def bypasses_presence(company_code: str, bypass_prefix: str) -> bool:
    """Test stores skip the geofence"""
    return bool(bypass_prefix) and company_code.upper().startswith(bypass_prefix.upper())
