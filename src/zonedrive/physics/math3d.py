"""
Vector and quaternion helpers for the physics world.

Quaternions are stored as numpy arrays in (x, y, z, w) order.
"""

import numpy as np

IDENTITY_QUATERNION = np.array([0.0, 0.0, 0.0, 1.0])
UP = np.array([0.0, 1.0, 0.0])

_EPSILON = 1e-9


def vec3(value) -> np.ndarray:
    """Coerce a 3-sequence or mapping with x/y/z keys to a float array."""
    if isinstance(value, dict):
        value = (value.get("x", 0.0), value.get("y", 0.0), value.get("z", 0.0))
    arr = np.asarray(value, dtype=float)
    if arr.shape != (3,):
        raise ValueError(f"Expected a 3-vector, got shape {arr.shape}")
    return arr.copy()


def normalize(vector: np.ndarray, fallback: np.ndarray | None = None) -> np.ndarray:
    """Return unit vector, or ``fallback`` (zeros by default) for zero length."""
    length = np.linalg.norm(vector)
    if length < _EPSILON:
        return np.zeros_like(vector) if fallback is None else fallback.copy()
    return vector / length


def quat_multiply(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Hamilton product ``a * b``."""
    ax, ay, az, aw = a
    bx, by, bz, bw = b
    return np.array([
        aw * bx + ax * bw + ay * bz - az * by,
        aw * by - ax * bz + ay * bw + az * bx,
        aw * bz + ax * by - ay * bx + az * bw,
        aw * bw - ax * bx - ay * by - az * bz,
    ])


def quat_normalize(q: np.ndarray) -> np.ndarray:
    return normalize(q, IDENTITY_QUATERNION)


def quat_from_axis_angle(axis: np.ndarray, angle: float) -> np.ndarray:
    """Build a rotation quaternion.

    Args:
        axis: Rotation axis (need not be unit length)
        angle: Rotation angle in radians

    Returns:
        Unit quaternion (x, y, z, w)
    """
    unit = normalize(np.asarray(axis, dtype=float), UP)
    half = 0.5 * angle
    s = np.sin(half)
    return np.array([unit[0] * s, unit[1] * s, unit[2] * s, np.cos(half)])


def quat_rotate(q: np.ndarray, vector: np.ndarray) -> np.ndarray:
    """Rotate a vector by a unit quaternion."""
    u = q[:3]
    w = q[3]
    t = 2.0 * np.cross(u, vector)
    return vector + w * t + np.cross(u, t)


def quat_conjugate(q: np.ndarray) -> np.ndarray:
    return np.array([-q[0], -q[1], -q[2], q[3]])


def integrate_orientation(q: np.ndarray, angular_velocity: np.ndarray, dt: float) -> np.ndarray:
    """Advance an orientation by a world-frame angular velocity over ``dt``.

    Args:
        q: Current orientation
        angular_velocity: Angular velocity [wx, wy, wz] in rad/s
        dt: Time step in seconds

    Returns:
        New normalized orientation
    """
    omega = np.array([angular_velocity[0], angular_velocity[1], angular_velocity[2], 0.0])
    dq = 0.5 * dt * quat_multiply(omega, q)
    return quat_normalize(q + dq)


def yaw_of(q: np.ndarray) -> float:
    """Heading about +Y in radians, measured from the -Z axis toward -X."""
    forward = quat_rotate(q, np.array([0.0, 0.0, -1.0]))
    return float(np.arctan2(-forward[0], -forward[2]))


def planar_direction(q: np.ndarray, local_axis: np.ndarray) -> np.ndarray:
    """Rotate ``local_axis`` by ``q`` and project it onto the ground plane.

    Falls back to the unrotated axis (itself projected) when the rotated
    vector is vertical.
    """
    rotated = quat_rotate(q, local_axis)
    rotated[1] = 0.0
    fallback = np.array([local_axis[0], 0.0, local_axis[2]])
    return normalize(rotated, normalize(fallback, np.array([0.0, 0.0, -1.0])))
