import os
from dataclasses import dataclass

# Physical constants
MU_SUN = 1.32712440018e11  # km^3/s^2
SECONDS_PER_DAY = 86400.0

# Grid resolution bounds (samples per axis = resolution + 1)
DEFAULT_RESOLUTION = 40
MIN_RESOLUTION = 5
MAX_RESOLUTION = 100

HORIZONS_API_URL = "https://ssd.jpl.nasa.gov/api/horizons.api"


@dataclass(frozen=True)
class Settings:
    """
    Runtime settings, read from the environment by load_settings().

    Attributes:
        horizons_url (str): Horizons API endpoint.
        http_timeout (float): Timeout per upstream request [s].
        cache_ttl (float): Ephemeris cache time-to-live [s].
        cache_max_entries (int): Maximum number of cached series.
        max_transfer_speed (float): Lambert speeds above this are discarded [km/s].
        log_level (str): Logging level name for the API server.
        host (str): API bind address.
        port (int): API bind port.
    """
    horizons_url: str = HORIZONS_API_URL
    http_timeout: float = 30.0
    cache_ttl: float = 30 * 60.0
    cache_max_entries: int = 256
    max_transfer_speed: float = 200.0
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3001


def load_settings(environ=None) -> Settings:
    """Builds Settings from environment variables, falling back to defaults."""
    env = os.environ if environ is None else environ
    defaults = Settings()
    return Settings(
        horizons_url=env.get("HORIZONS_API_URL", defaults.horizons_url),
        http_timeout=float(env.get("ORBITCORE_HTTP_TIMEOUT", defaults.http_timeout)),
        cache_ttl=float(env.get("ORBITCORE_CACHE_TTL", defaults.cache_ttl)),
        cache_max_entries=int(env.get("ORBITCORE_CACHE_MAX_ENTRIES", defaults.cache_max_entries)),
        max_transfer_speed=float(env.get("ORBITCORE_MAX_TRANSFER_SPEED", defaults.max_transfer_speed)),
        log_level=env.get("ORBITCORE_LOG_LEVEL", defaults.log_level).upper(),
        host=env.get("ORBITCORE_HOST", defaults.host),
        port=int(env.get("ORBITCORE_PORT", defaults.port)),
    )
