"""
Shared pytest fixtures.

Provides:
  - A fake Horizons session that serves vector tables for coplanar circular
    planet orbits, so no test touches the network
  - A manually advanced clock for cache expiry
  - An EphemerisProvider wired to both
"""

import threading
from datetime import datetime, timedelta
from unittest.mock import MagicMock

import numpy as np
import pytest

from orbitcore.config import MU_SUN
from orbitcore.ephemeris.cache import EphemerisCache
from orbitcore.ephemeris.horizons import HorizonsClient
from orbitcore.ephemeris.provider import EphemerisProvider

AU_KM = 149597870.7
J2000_JD = 2451545.0
J2000 = datetime(2000, 1, 1, 12, 0, 0)

# Horizons id -> (semi-major axis [AU], mean longitude at J2000 [deg])
CIRCULAR_PLANETS = {
    "199": (0.387098, 252.25),
    "299": (0.723332, 181.98),
    "399": (1.000000, 100.46),
    "499": (1.523679, 355.45),
    "599": (5.2044, 34.40),
    "699": (9.5826, 49.94),
    "799": (19.2184, 313.23),
    "899": (30.110, 304.88),
}


def julian_date(date_str: str) -> float:
    """JD of a 'YYYY-MM-DD' date at 00:00."""
    return J2000_JD + (datetime.strptime(date_str, "%Y-%m-%d") - J2000).total_seconds() / 86400.0


def circular_state(body_id: str, jd: float):
    """Heliocentric position [km] and velocity [km/s] on a circular orbit in the ecliptic."""
    a_au, l0_deg = CIRCULAR_PLANETS[body_id]
    r = a_au * AU_KM
    n = np.sqrt(MU_SUN / r**3)  # rad/s
    lam = np.radians(l0_deg) + n * (jd - J2000_JD) * 86400.0
    v = np.sqrt(MU_SUN / r)
    position = np.array([r * np.cos(lam), r * np.sin(lam), 0.0])
    velocity = np.array([-v * np.sin(lam), v * np.cos(lam), 0.0])
    return position, velocity


def vectors_payload(body_id: str, start: str, stop: str, steps: int) -> str:
    """Horizons-style 'result' text with a CSV vector table of steps + 1 rows."""
    jd0 = julian_date(start)
    jd1 = julian_date(stop)
    lines = [
        "*******************************************************************************",
        f"Ephemeris / API_USER  Target body name: synthetic ({body_id})",
        "            JDTDB,            Calendar Date (TDB),                      X,                      Y,                      Z,                     VX,                     VY,                     VZ,",
        "**************************************************************************************************************************************************",
        "$$SOE",
    ]
    for k in range(steps + 1):
        jd = jd0 + (jd1 - jd0) * k / steps
        cal = (J2000 + timedelta(days=jd - J2000_JD)).strftime("%Y-%b-%d %H:%M:%S.0000")
        pos, vel = circular_state(body_id, jd)
        values = ", ".join(f"{c:.15E}" for c in (*pos, *vel))
        lines.append(f"{jd:.9f}, A.D. {cal}, {values},")
    lines += ["$$EOE", "*******************************************************************************"]
    return "\n".join(lines)


def _unquote(value: str) -> str:
    return value.strip("'")


class FakeHorizonsSession:
    """Stands in for requests.Session; records every GET."""

    def __init__(self):
        self.calls = []
        self.failures = {}  # body id -> (status, text)
        self.barrier = None
        self.peak_in_flight = 0
        self._in_flight = 0
        self._lock = threading.Lock()

    def fail(self, body_id: str, status: int = 503, text: str = "Service Unavailable"):
        self.failures[body_id] = (status, text)

    def calls_for(self, body_id: str) -> int:
        return sum(1 for params in self.calls if _unquote(params["COMMAND"]) == body_id)

    def hold_until_parallel(self, parties: int = 2, timeout: float = 5.0):
        """Every GET blocks until `parties` GETs are in flight at once."""
        self.barrier = threading.Barrier(parties, timeout=timeout)

    def get(self, url, params=None, timeout=None):
        with self._lock:
            self.calls.append(dict(params))
            self._in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self._in_flight)
        try:
            if self.barrier is not None:
                self.barrier.wait()
            return self._respond(params)
        finally:
            with self._lock:
                self._in_flight -= 1

    def _respond(self, params):
        body_id = _unquote(params["COMMAND"])
        response = MagicMock()
        if body_id in self.failures:
            status, text = self.failures[body_id]
            response.ok = False
            response.status_code = status
            response.text = text
            return response

        result = vectors_payload(
            body_id,
            _unquote(params["START_TIME"]),
            _unquote(params["STOP_TIME"]),
            int(_unquote(params["STEP_SIZE"])),
        )
        response.ok = True
        response.status_code = 200
        response.json.return_value = {"signature": {"source": "NASA/JPL Horizons API", "version": "1.2"}, "result": result}
        return response


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def horizons_session():
    return FakeHorizonsSession()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def provider(horizons_session, fake_clock):
    client = HorizonsClient(base_url="https://horizons.test/api/horizons.api", session=horizons_session)
    cache = EphemerisCache(ttl=30 * 60.0, clock=fake_clock)
    return EphemerisProvider(client, cache)
