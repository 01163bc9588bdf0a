"""Proximity lookup for addresses.

Distances are great-circle distances on a sphere of radius 6378.1 km. The
SQL side only narrows candidates with a latitude/longitude bounding box; the
exact spherical check runs in Python so it behaves the same on every backend.
"""

from __future__ import annotations

import math

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pickmypit.db.models import Address

EARTH_RADIUS_KM = 6378.1


def radius_to_radians(radius_km: float) -> float:
    return radius_km / EARTH_RADIUS_KM


def central_angle(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Angle in radians between two points, haversine form."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = phi2 - phi1
    dlambda = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return 2 * math.asin(min(1.0, math.sqrt(a)))


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    return central_angle(lat1, lon1, lat2, lon2) * EARTH_RADIUS_KM


def bounding_box(latitude: float, longitude: float, radius_km: float) -> tuple[float, float, float, float] | None:
    """(min_lat, max_lat, min_lon, max_lon) enclosing the circle.

    Returns None when the circle reaches a pole or crosses the antimeridian;
    callers then skip the prefilter.
    """
    dlat = math.degrees(radius_to_radians(radius_km))
    min_lat, max_lat = latitude - dlat, latitude + dlat
    if min_lat <= -90 or max_lat >= 90:
        return None
    dlon = math.degrees(math.asin(min(1.0, math.sin(radius_to_radians(radius_km)) / math.cos(math.radians(latitude)))))
    min_lon, max_lon = longitude - dlon, longitude + dlon
    if min_lon < -180 or max_lon > 180:
        return None
    return min_lat, max_lat, min_lon, max_lon


async def find_address_ids_within(
    db: AsyncSession,
    latitude: float,
    longitude: float,
    radius_km: float,
) -> list[int]:
    """Ids of every geo-tagged address within ``radius_km`` of the point."""
    max_angle = radius_to_radians(radius_km)
    query = select(Address.id, Address.latitude, Address.longitude).where(
        Address.latitude.is_not(None), Address.longitude.is_not(None)
    )
    box = bounding_box(latitude, longitude, radius_km)
    if box is not None:
        min_lat, max_lat, min_lon, max_lon = box
        query = query.where(
            Address.latitude.between(min_lat, max_lat),
            Address.longitude.between(min_lon, max_lon),
        )

    rows = (await db.execute(query)).all()
    return [
        row.id
        for row in rows
        if central_angle(latitude, longitude, row.latitude, row.longitude) <= max_angle
    ]
