import numpy as np


def vec3(x: float, y: float, z: float) -> np.ndarray:
    """Returns a read-only float 3-vector."""
    v = np.array([x, y, z], dtype=float)
    v.flags.writeable = False
    return v


def sub(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Component-wise difference a - b."""
    return np.subtract(a, b)


def mag(v: np.ndarray) -> float:
    """Euclidean norm of v."""
    return float(np.linalg.norm(v))


def dot(a: np.ndarray, b: np.ndarray) -> float:
    return float(np.dot(a, b))


def cross(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return np.cross(a, b)
