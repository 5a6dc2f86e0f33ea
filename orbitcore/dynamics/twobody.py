import numpy as np
from scipy.integrate import solve_ivp


class TwoBodyDynamics:
    """
    Propagates a state under the point-mass gravity of a single central body.
    """
    def __init__(self, mu: float):
        """
        Args:
            mu (float): Gravitational parameter of the central body [km^3/s^2].
        """
        if mu <= 0:
            raise ValueError(f"Gravitational parameter must be positive, got {mu}")
        self.mu = mu

    def equations_of_motion(self, t: float, state: np.ndarray) -> np.ndarray:
        """Computes derivative [v, a] of a 6-element state."""
        r = state[0:3]
        v = state[3:6]
        r_mag = np.linalg.norm(r)
        a = -self.mu * r / r_mag**3
        return np.concatenate((v, a))

    def specific_energy(self, state: np.ndarray) -> float:
        """Vis-viva energy v^2/2 - mu/r [km^2/s^2]."""
        return 0.5 * np.linalg.norm(state[3:6])**2 - self.mu / np.linalg.norm(state[0:3])

    def propagate(self, initial_state: np.ndarray, t_span: tuple[float, float],
                  max_step: float = np.inf, rtol: float = 1e-10, atol: float = 1e-12):
        """
        Propagate the state from t_span[0] to t_span[1].

        Args:
            initial_state (np.ndarray): Initial [x, y, z, vx, vy, vz].
            t_span (tuple): (t_start, t_end) in seconds.
            max_step (float): Maximum step size for integrator.
            rtol (float): Relative tolerance.
            atol (float): Absolute tolerance.

        Returns:
            scipy.integrate.OdeResult: Integration result, y has shape (6, N).
        """
        y0 = np.asarray(initial_state, dtype=float)
        if y0.shape != (6,):
            raise ValueError(f"State vector length {y0.size} not supported. Expected 6.")

        sol = solve_ivp(
            fun=self.equations_of_motion,
            t_span=t_span,
            y0=y0,
            method='DOP853',
            rtol=rtol,
            atol=atol,
            max_step=max_step,
            dense_output=True
        )
        return sol
