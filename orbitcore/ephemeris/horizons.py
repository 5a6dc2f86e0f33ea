"""
JPL Horizons client.

Fetches heliocentric, ecliptic-frame state vectors (position + velocity)
for the major planets. Positions are in km and velocities in km/s.
"""

import logging
import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

import numpy as np
import requests

from orbitcore.config import HORIZONS_API_URL
from orbitcore.errors import (
    EmptyResultError,
    EphemerisError,
    FormatError,
    InvalidInputError,
    NetworkError,
)
from orbitcore.trajectory.vectors import vec3

logger = logging.getLogger(__name__)

# Horizons COMMAND ids of the major planets
PLANET_IDS = {
    "mercury": "199",
    "venus": "299",
    "earth": "399",
    "mars": "499",
    "jupiter": "599",
    "saturn": "699",
    "uranus": "799",
    "neptune": "899",
}

SOE_MARKER = "$$SOE"
EOE_MARKER = "$$EOE"

# Characters of a failed response body kept in the error message
_EXCERPT_LENGTH = 200

_ERA_PREFIX = re.compile(r"^\s*A\.D\.\s*")


def resolve_body(name: Optional[str]) -> str:
    """
    Maps a planet name (case-insensitive) to its Horizons id.

    Raises:
        InvalidInputError: If the name is not one of the eight major planets.
    """
    key = name.strip().lower() if isinstance(name, str) else ""
    if key not in PLANET_IDS:
        raise InvalidInputError(
            f"Invalid planet {name!r}. Available: {', '.join(PLANET_IDS)}",
            options=PLANET_IDS.keys(),
        )
    return PLANET_IDS[key]


@dataclass(frozen=True)
class StateVector:
    """
    One sampled heliocentric state.

    Attributes:
        epoch (float): Julian date (TDB).
        calendar_date (str): Calendar date as printed by Horizons.
        position (np.ndarray): [x, y, z] in km.
        velocity (np.ndarray): [vx, vy, vz] in km/s.
    """
    epoch: float
    calendar_date: str
    position: np.ndarray
    velocity: np.ndarray


class FailureKind(Enum):
    NETWORK = "network"
    FORMAT = "format"
    EMPTY = "empty"


_FAILURE_ERRORS = {
    FailureKind.NETWORK: NetworkError,
    FailureKind.FORMAT: FormatError,
    FailureKind.EMPTY: EmptyResultError,
}


@dataclass(frozen=True)
class FetchSuccess:
    series: tuple


@dataclass(frozen=True)
class FetchFailure:
    kind: FailureKind
    detail: str

    def to_exception(self) -> EphemerisError:
        return _FAILURE_ERRORS[self.kind](self.detail)


FetchResult = Union[FetchSuccess, FetchFailure]


def parse_vectors_table(result: str) -> list[StateVector]:
    """
    Parses the CSV block between $$SOE and $$EOE into state vectors.

    Columns are JDTDB, calendar date, X, Y, Z, VX, VY, VZ; anything after
    is ignored. Rows whose Julian date is not a finite number are skipped.

    Raises:
        FormatError: If the markers are missing or a vector column is not numeric.
        EmptyResultError: If no row survives.
    """
    lines = result.splitlines()
    stripped = [line.strip() for line in lines]
    try:
        soe = stripped.index(SOE_MARKER)
        eoe = stripped.index(EOE_MARKER, soe + 1)
    except ValueError:
        raise FormatError(f"Could not find {SOE_MARKER}/{EOE_MARKER} markers in Horizons response")

    states = []
    for line in stripped[soe + 1:eoe]:
        if not line:
            continue
        cols = [c.strip() for c in line.split(",")]
        if len(cols) < 8:
            continue

        try:
            jd = float(cols[0])
        except ValueError:
            continue
        if not math.isfinite(jd):
            continue

        try:
            x, y, z, vx, vy, vz = (float(c) for c in cols[2:8])
        except ValueError:
            raise FormatError(f"Malformed vector row in Horizons response: {line[:80]}")

        states.append(StateVector(
            epoch=jd,
            calendar_date=_ERA_PREFIX.sub("", cols[1]).strip(),
            position=vec3(x, y, z),
            velocity=vec3(vx, vy, vz),
        ))

    if not states:
        raise EmptyResultError("Horizons returned no data points")

    return states


class HorizonsClient:
    """
    Thin request/response wrapper around the Horizons API.

    Example:
        >>> client = HorizonsClient()
        >>> outcome = client.fetch("499", "2026-01-01", "2026-02-01", 10)
    """

    def __init__(self, base_url: str = HORIZONS_API_URL, timeout: float = 30.0,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url
        self.timeout = timeout
        self.session = session or requests.Session()

    @staticmethod
    def build_params(body_id: str, start_date: str, end_date: str, steps: int) -> dict:
        """Query parameters for a Sun-centred vector table (values single-quoted, Horizons convention)."""
        return {
            "format": "json",
            "COMMAND": f"'{body_id}'",
            "OBJ_DATA": "'NO'",
            "MAKE_EPHEM": "'YES'",
            "EPHEM_TYPE": "'VECTORS'",
            "CENTER": "'500@10'",
            "START_TIME": f"'{start_date}'",
            "STOP_TIME": f"'{end_date}'",
            # Unitless integer -> uniform steps, steps + 1 points returned
            "STEP_SIZE": f"'{steps}'",
            "VEC_TABLE": "'2'",
            "CSV_FORMAT": "'YES'",
            "VEC_LABELS": "'NO'",
        }

    def fetch(self, body_id: str, start_date: str, end_date: str, steps: int) -> FetchResult:
        """
        Issues one Horizons request and parses the vector table.

        Args:
            body_id (str): Horizons COMMAND id (e.g. '399' for Earth).
            start_date (str): Window start (e.g. '2026-06-01').
            end_date (str): Window end.
            steps (int): Number of uniform time steps.

        Returns:
            FetchSuccess with the series, or FetchFailure naming what went wrong.
        """
        params = self.build_params(body_id, start_date, end_date, steps)
        logger.info("Requesting Horizons vectors for %s (%s .. %s, %d steps)", body_id, start_date, end_date, steps)

        try:
            response = self.session.get(self.base_url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            return FetchFailure(FailureKind.NETWORK, f"Horizons request failed: {e}")

        if not response.ok:
            excerpt = (response.text or "")[:_EXCERPT_LENGTH]
            return FetchFailure(FailureKind.NETWORK, f"Horizons HTTP {response.status_code}: {excerpt}")

        try:
            payload = response.json()
        except ValueError:
            return FetchFailure(FailureKind.FORMAT, "Horizons response is not valid JSON")

        result = payload.get("result") if isinstance(payload, dict) else None
        if not isinstance(result, str):
            return FetchFailure(FailureKind.FORMAT, 'Horizons response missing "result" field')

        try:
            states = parse_vectors_table(result)
        except FormatError as e:
            return FetchFailure(FailureKind.FORMAT, str(e))
        except EmptyResultError as e:
            return FetchFailure(FailureKind.EMPTY, str(e))

        return FetchSuccess(tuple(states))
