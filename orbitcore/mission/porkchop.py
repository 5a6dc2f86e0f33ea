import logging
import math
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

import numpy as np

from orbitcore.config import (
    DEFAULT_RESOLUTION,
    MAX_RESOLUTION,
    MIN_RESOLUTION,
    MU_SUN,
    SECONDS_PER_DAY,
)
from orbitcore.ephemeris.horizons import StateVector, resolve_body
from orbitcore.ephemeris.provider import EphemerisProvider
from orbitcore.errors import InvalidInputError
from orbitcore.trajectory.lambert import LambertSolver, NoSolution
from orbitcore.trajectory.vectors import mag, sub

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferSample:
    """Cost metrics of one departure/arrival pair."""
    departure_v_inf: float  # km/s
    arrival_v_inf: float    # km/s
    c3: float               # km^2/s^2
    total_delta_v: float    # km/s
    tof_days: float


@dataclass
class PorkchopGrid:
    """
    Porkchop grids, rows = departure samples, columns = arrival samples.
    Cells without a transfer hold NaN in every metric.
    """
    departure_body: str
    arrival_body: str
    departure_dates: list
    arrival_dates: list
    departure_epochs: np.ndarray
    arrival_epochs: np.ndarray
    c3: np.ndarray
    arrival_v_inf: np.ndarray
    total_delta_v: np.ndarray
    tof_days: np.ndarray

    METRICS = ("c3", "arrival_v_inf", "total_delta_v", "tof_days")

    @property
    def shape(self) -> tuple:
        return self.c3.shape

    def optimum(self, metric: str = "c3") -> Optional[tuple]:
        """
        Lowest finite cell of a metric.

        Returns:
            (row, column, value), or None if every cell is NaN.
        """
        if metric not in self.METRICS:
            raise ValueError(f"Unknown metric '{metric}'. Expected one of {self.METRICS}")
        values = getattr(self, metric)
        if np.all(np.isnan(values)):
            return None
        i, j = np.unravel_index(np.nanargmin(values), values.shape)
        return int(i), int(j), float(values[i, j])

    def to_dict(self) -> dict:
        """JSON-ready payload; NaN cells become None."""
        def rows(grid):
            return [[None if math.isnan(v) else v for v in row] for row in grid.tolist()]

        return {
            "departurePlanet": self.departure_body,
            "arrivalPlanet": self.arrival_body,
            "departureDates": list(self.departure_dates),
            "arrivalDates": list(self.arrival_dates),
            "departureJDs": self.departure_epochs.tolist(),
            "arrivalJDs": self.arrival_epochs.tolist(),
            "grid": {
                "c3_km2s2": rows(self.c3),
                "arrivalVinf_kms": rows(self.arrival_v_inf),
                "totalDeltaV_kms": rows(self.total_delta_v),
                "tof_days": rows(self.tof_days),
            },
        }


def clamp_resolution(resolution) -> int:
    """Rounds resolution and clamps it to [MIN_RESOLUTION, MAX_RESOLUTION]; None means the default."""
    if resolution is None:
        return DEFAULT_RESOLUTION
    try:
        value = float(resolution)
    except (TypeError, ValueError):
        raise InvalidInputError(f"Resolution must be a number, got {resolution!r}")
    if not math.isfinite(value):
        raise InvalidInputError(f"Resolution must be finite, got {resolution!r}")
    return min(max(int(round(value)), MIN_RESOLUTION), MAX_RESOLUTION)


def _validate_range(name: str, date_range) -> tuple:
    if not isinstance(date_range, (tuple, list)) or len(date_range) != 2:
        raise InvalidInputError(f"Missing date range fields: {name} needs (start, end)")
    start, end = date_range
    if not (isinstance(start, str) and start.strip() and isinstance(end, str) and end.strip()):
        raise InvalidInputError(f"Missing date range fields: {name} needs (start, end)")
    return start.strip(), end.strip()


class PorkchopBuilder:
    """
    Generates porkchop grids for interplanetary transfers.
    Calculates departure C3, arrival V_inf, total Delta-V and Time of Flight (TOF)
    for every pair of sampled departure and arrival dates.
    """
    def __init__(self, provider: EphemerisProvider, mu: float = MU_SUN, max_speed: Optional[float] = None):
        """
        Args:
            provider (EphemerisProvider): Source of planet state vectors.
            mu (float): Gravitational parameter of the central body [km^3/s^2].
            max_speed (float, optional): Lambert speeds above this are discarded [km/s].
        """
        self.provider = provider
        self.mu = mu
        self.max_speed = max_speed

    def build(self, departure_body: str, arrival_body: str, departure_range, arrival_range,
              resolution=DEFAULT_RESOLUTION) -> PorkchopGrid:
        """
        Fetches both ephemerides and evaluates every departure/arrival pair.

        Args:
            departure_body (str): Departure planet name.
            arrival_body (str): Arrival planet name.
            departure_range (tuple[str, str]): Departure window (start, end).
            arrival_range (tuple[str, str]): Arrival window (start, end).
            resolution (int): Steps per axis, clamped to [5, 100]; grids are (resolution+1)^2.

        Returns:
            PorkchopGrid

        Raises:
            InvalidInputError: Unknown planet or missing date fields.
            NetworkError, FormatError, EmptyResultError: Either ephemeris fetch failed.
        """
        resolve_body(departure_body)
        resolve_body(arrival_body)
        dep_start, dep_end = _validate_range("departure", departure_range)
        arr_start, arr_end = _validate_range("arrival", arrival_range)
        steps = clamp_resolution(resolution)

        dep_name = departure_body.strip().lower()
        arr_name = arrival_body.strip().lower()

        # Both fetches in flight together; either failure fails the whole build
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="ephemeris") as pool:
            dep_future = pool.submit(self.provider.get_ephemeris, dep_name, dep_start, dep_end, steps)
            arr_future = pool.submit(self.provider.get_ephemeris, arr_name, arr_start, arr_end, steps)
            dep_states = dep_future.result()
            arr_states = arr_future.result()

        return self.evaluate(dep_name, arr_name, dep_states, arr_states)

    def evaluate(self, departure_body: str, arrival_body: str, dep_states, arr_states) -> PorkchopGrid:
        """Builds the grids from two already-fetched series."""
        n_dep = len(dep_states)
        n_arr = len(arr_states)
        logger.debug("Evaluating %dx%d porkchop grid for %s -> %s", n_dep, n_arr, departure_body, arrival_body)
        started = time.perf_counter()

        c3_grid = np.full((n_dep, n_arr), np.nan)
        v_inf_arr_grid = np.full((n_dep, n_arr), np.nan)
        dv_grid = np.full((n_dep, n_arr), np.nan)
        tof_grid = np.full((n_dep, n_arr), np.nan)

        for i, dep in enumerate(dep_states):
            for j, arr in enumerate(arr_states):
                sample = self.evaluate_pair(dep, arr)
                if sample is None:
                    continue
                c3_grid[i, j] = sample.c3
                v_inf_arr_grid[i, j] = sample.arrival_v_inf
                dv_grid[i, j] = sample.total_delta_v
                tof_grid[i, j] = sample.tof_days

        invalid = int(np.isnan(c3_grid).sum())
        logger.info("Porkchop %s -> %s: %dx%d grid, %d cells without transfer, %.2f s",
                    departure_body, arrival_body, n_dep, n_arr, invalid, time.perf_counter() - started)

        return PorkchopGrid(
            departure_body=departure_body,
            arrival_body=arrival_body,
            departure_dates=[s.calendar_date for s in dep_states],
            arrival_dates=[s.calendar_date for s in arr_states],
            departure_epochs=np.array([s.epoch for s in dep_states], dtype=float),
            arrival_epochs=np.array([s.epoch for s in arr_states], dtype=float),
            c3=c3_grid,
            arrival_v_inf=v_inf_arr_grid,
            total_delta_v=dv_grid,
            tof_days=tof_grid,
        )

    def evaluate_pair(self, dep: StateVector, arr: StateVector) -> Optional[TransferSample]:
        """Transfer metrics for one date pair, or None when arrival is not after departure or no transfer exists."""
        dt = (arr.epoch - dep.epoch) * SECONDS_PER_DAY
        if dt <= 0:
            return None

        result = LambertSolver.solve(dep.position, arr.position, dt, self.mu, prograde=True, max_speed=self.max_speed)
        if isinstance(result, NoSolution):
            return None

        v_inf_dep = mag(sub(result.v1, dep.velocity))
        v_inf_arr = mag(sub(result.v2, arr.velocity))
        return TransferSample(
            departure_v_inf=v_inf_dep,
            arrival_v_inf=v_inf_arr,
            c3=v_inf_dep**2,
            total_delta_v=v_inf_dep + v_inf_arr,
            tof_days=dt / SECONDS_PER_DAY,
        )


def build_porkchop(provider: EphemerisProvider, departure_body: str, arrival_body: str,
                   departure_range, arrival_range, resolution=DEFAULT_RESOLUTION,
                   max_speed: Optional[float] = None) -> PorkchopGrid:
    """Functional entry point for PorkchopBuilder.build."""
    return PorkchopBuilder(provider, max_speed=max_speed).build(
        departure_body, arrival_body, departure_range, arrival_range, resolution)
