import httpx
import logging
from typing import Optional, Sequence

from config import settings

logger = logging.getLogger(__name__)

GOOGLE_DIRECTIONS_API_URL = "https://maps.googleapis.com/maps/api/directions/json"
METERS_PER_MILE = 1609.34


async def get_route_distance_miles(locations: Sequence[str]) -> Optional[float]:
    """
    Appelle l'API Google Directions sur l'itinéraire départ → arrêts → arrivée
    et retourne la distance routière totale en miles (None si indisponible).
    """
    if not settings.GOOGLE_DIRECTIONS_API_KEY or len(locations) < 2:
        return None

    params = {
        "origin": locations[0],
        "destination": locations[-1],
        "mode": "driving",
        "key": settings.GOOGLE_DIRECTIONS_API_KEY,
    }
    if len(locations) > 2:
        params["waypoints"] = "|".join(locations[1:-1])

    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(GOOGLE_DIRECTIONS_API_URL, params=params)
            response.raise_for_status()
            data = response.json()
    except httpx.HTTPError as e:
        logger.error(f"Failed to call Google Directions API: {e}")
        return None

    if data.get("status") != "OK":
        logger.error(f"Google Directions API error: {data.get('status')} - {data.get('error_message')}")
        return None

    meters = sum(leg["distance"]["value"] for leg in data["routes"][0]["legs"])
    return round(meters / METERS_PER_MILE, 2)
