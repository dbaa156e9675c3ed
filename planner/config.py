# planner/config.py
"""Configuration management for the itinerary planner."""
import os
from dotenv import load_dotenv

load_dotenv()


def get_geocoding_config():
    """Get Nominatim geocoder configuration."""
    return {
        "base_url": os.getenv("NOMINATIM_URL", "https://nominatim.openstreetmap.org"),
        "user_agent": os.getenv("GEOCODER_USER_AGENT", "itinerary-planner/1.0"),
        "timeout": float(os.getenv("GEOCODER_TIMEOUT", "10.0")),
    }


def get_places_config():
    """Get OpenTripMap place search configuration."""
    return {
        "api_key": os.getenv("OPENTRIPMAP_API_KEY", ""),
        "base_url": os.getenv("OPENTRIPMAP_URL", "https://api.opentripmap.com/0.1/en"),
        "timeout": float(os.getenv("PLACES_TIMEOUT", "10.0")),
        "limit": int(os.getenv("PLACES_LIMIT", "50")),
    }


def get_directions_config():
    """Get OSRM routing configuration."""
    return {
        "base_url": os.getenv("OSRM_URL", "https://router.project-osrm.org"),
        "timeout": float(os.getenv("DIRECTIONS_TIMEOUT", "8.0")),
    }


def get_planner_config():
    """Get planning defaults shared by every flow."""
    return {
        "default_city": os.getenv("PLANNER_DEFAULT_CITY", "Luxembourg"),
        "geocode_retry_delay": float(os.getenv("PLANNER_GEOCODE_RETRY_DELAY", "1.0")),
        "location_timeout": float(os.getenv("PLANNER_LOCATION_TIMEOUT", "10.0")),
        "tolerance_margin": float(os.getenv("PLANNER_TOLERANCE_MARGIN", "600")),
    }


def get_allowed_origins():
    """Get the CORS origins accepted by the HTTP layer."""
    raw_origins = os.getenv("PLANNER_ALLOWED_ORIGINS") or "*"
    origins = [origin.strip() for origin in raw_origins.split(",") if origin.strip()]
    return origins or ["*"]
