import math
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
from scipy.optimize import brentq

from orbitcore.config import MU_SUN
from orbitcore.trajectory.vectors import cross, dot, mag

# Single-revolution upper limit of the universal variable: z -> (2*pi)^2
_Z_MAX = 4.0 * math.pi**2 - 1e-6
# Lower search start (hyperbolic side) and the floor the bracket may not pass
_Z_START = -4.0 * math.pi**2
_Z_FLOOR = -1.0e5
# Below this |z| the Stumpff functions use their power series
_SERIES_LIMIT = 1e-3
# |r1 x r2| / (|r1| |r2|) below this is treated as collinear
_COLLINEAR_TOL = 1e-12
# Brent stopping tolerance on z; acceptance is judged on the flight-time residual
_Z_XTOL = 1e-9


@dataclass(frozen=True)
class LambertSolution:
    """Transfer velocities at r1 and r2 [km/s]."""
    v1: np.ndarray
    v2: np.ndarray


@dataclass(frozen=True)
class NoSolution:
    """No usable single-revolution transfer exists for the inputs."""
    reason: str


LambertResult = Union[LambertSolution, NoSolution]


class LambertSolver:
    """
    Single-revolution Lambert solver using Universal Variables.
    This implementation solves the boundary value problem: finding the velocity vectors
    at two points (r1, r2) given the time of flight (dt).

    The time-of-flight equation is monotonic in the universal variable z on
    (-inf, 4*pi^2), so the root is bracketed first and then refined with
    Brent's method. Every failure mode is reported as NoSolution.
    """

    @staticmethod
    def solve(r1: np.ndarray, r2: np.ndarray, dt: float, mu: float, prograde: bool = True,
              max_iter: int = 100, tol: float = 1e-6, max_speed: Optional[float] = None) -> LambertResult:
        """
        Solves Lambert's problem for the transfer between position vectors r1 and r2
        with time of flight dt.

        Args:
            r1 (np.ndarray): Initial position vector [km].
            r2 (np.ndarray): Final position vector [km].
            dt (float): Time of flight [seconds].
            mu (float): Gravitational parameter [km^3/s^2].
            prograde (bool): If True, take the branch whose angular momentum has a
                             non-negative z-component; otherwise the opposite branch.
            max_iter (int): Maximum iterations for the root finder.
            tol (float): Relative time-of-flight tolerance accepted at convergence.
            max_speed (float, optional): Reject solutions with |v1| or |v2| above this [km/s].

        Returns:
            LambertSolution with (v1, v2) [km/s], or NoSolution describing why not.
        """
        r1 = np.asarray(r1, dtype=float)
        r2 = np.asarray(r2, dtype=float)

        if not (np.all(np.isfinite(r1)) and np.all(np.isfinite(r2))):
            return NoSolution("non-finite position vector")
        if not (math.isfinite(dt) and dt > 0.0):
            return NoSolution("time of flight must be positive")
        if not (math.isfinite(mu) and mu > 0.0):
            return NoSolution("gravitational parameter must be positive")

        r1_mag = mag(r1)
        r2_mag = mag(r2)
        if r1_mag == 0.0 or r2_mag == 0.0:
            return NoSolution("zero-length position vector")

        cross_12 = cross(r1, r2)
        if mag(cross_12) <= _COLLINEAR_TOL * r1_mag * r2_mag:
            return NoSolution("collinear position vectors, transfer plane undefined")

        # Change in true anomaly, dnu
        cos_dnu = min(1.0, max(-1.0, dot(r1, r2) / (r1_mag * r2_mag)))
        dnu = math.acos(cos_dnu)

        # Reflex angle when the orbit normal disagrees with the requested direction
        if prograde:
            if cross_12[2] < 0:
                dnu = 2.0 * math.pi - dnu
        else:
            if cross_12[2] >= 0:
                dnu = 2.0 * math.pi - dnu

        # "A" constant
        A = math.sin(dnu) * math.sqrt(r1_mag * r2_mag / (1.0 - cos_dnu))
        if abs(A) < _COLLINEAR_TOL * math.sqrt(r1_mag * r2_mag):
            return NoSolution("degenerate transfer geometry (A = 0)")

        sqrt_mu = math.sqrt(mu)

        def y_of(z):
            return r1_mag + r2_mag + A * (z * LambertSolver.stumpS(z) - 1.0) / math.sqrt(LambertSolver.stumpC(z))

        def tof_residual(z):
            y = y_of(z)
            if y <= 0.0:
                # Unphysical region; flight time has already reached zero at y = 0
                return -dt
            c_z = LambertSolver.stumpC(z)
            x = math.sqrt(y / c_z)
            t_flight = (x**3 * LambertSolver.stumpS(z) + A * math.sqrt(y)) / sqrt_mu
            return t_flight - dt

        try:
            if tof_residual(_Z_MAX) < 0.0:
                return NoSolution("time of flight requires more than one revolution")

            z_lo = _Z_START
            while tof_residual(z_lo) > 0.0:
                z_lo *= 4.0
                if z_lo < _Z_FLOOR:
                    return NoSolution("time of flight shorter than the minimum for this geometry")

            z, info = brentq(tof_residual, z_lo, _Z_MAX, xtol=_Z_XTOL, rtol=1e-12,
                             maxiter=max_iter, full_output=True, disp=False)
            if not info.converged or abs(tof_residual(z)) > tol * dt:
                return NoSolution("root finder did not converge")

            y = y_of(z)
        except (ArithmeticError, ValueError) as e:
            return NoSolution(f"numerical failure: {e}")

        if y <= 0.0:
            return NoSolution("root lies in the unphysical region")

        # Lagrange coefficients
        f = 1.0 - y / r1_mag
        g = A * math.sqrt(y / mu)
        g_dot = 1.0 - y / r2_mag
        if g == 0.0:
            return NoSolution("degenerate Lagrange coefficient g = 0")

        v1 = (r2 - f * r1) / g
        v2 = (g_dot * r2 - r1) / g

        if not (np.all(np.isfinite(v1)) and np.all(np.isfinite(v2))):
            return NoSolution("non-finite transfer velocity")
        if max_speed is not None and (mag(v1) > max_speed or mag(v2) > max_speed):
            return NoSolution("transfer speed exceeds limit")

        return LambertSolution(v1=v1, v2=v2)

    @staticmethod
    def stumpS(z: float) -> float:
        if z > _SERIES_LIMIT:
            sz = math.sqrt(z)
            return (sz - math.sin(sz)) / sz**3
        elif z < -_SERIES_LIMIT:
            sz = math.sqrt(-z)
            return (math.sinh(sz) - sz) / sz**3
        else:
            return 1.0/6.0 - z/120.0 + z*z/5040.0 - z**3/362880.0

    @staticmethod
    def stumpC(z: float) -> float:
        if z > _SERIES_LIMIT:
            # 2 sin^2(sqrt(z)/2) == 1 - cos(sqrt(z)), without cancellation near z = 4 pi^2
            return 2.0 * math.sin(math.sqrt(z) / 2.0)**2 / z
        elif z < -_SERIES_LIMIT:
            return (math.cosh(math.sqrt(-z)) - 1.0) / (-z)
        else:
            return 0.5 - z/24.0 + z*z/720.0 - z**3/40320.0


def solve_lambert(r1: np.ndarray, r2: np.ndarray, dt: float, mu: float = MU_SUN,
                  prograde: bool = True, max_speed: Optional[float] = None) -> LambertResult:
    """Functional entry point for LambertSolver.solve."""
    return LambertSolver.solve(r1, r2, dt, mu, prograde=prograde, max_speed=max_speed)
