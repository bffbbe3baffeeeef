"""NumPy-backed math utilities: Vec3, Quaternion, Mat4 operations.

Vectors are plain numpy arrays; quaternions are [x, y, z, w] arrays.
Matrices are 4x4 numpy arrays acting on column vectors (p' = M @ p), with
the translation in M[:3, 3].  They are packed column-major (OpenGL
convention) only when handed to a renderer, see ``mat4_to_gl``.
"""

from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from boneforge.constants import EPSILON, GL_MATRIX_DTYPE, SLERP_LINEAR_THRESHOLD

# Type aliases
Vec3 = NDArray[np.float64]
Mat4 = NDArray[np.float64]
Quat = NDArray[np.float64]  # [x, y, z, w]


def vec3(x: float = 0.0, y: float = 0.0, z: float = 0.0) -> Vec3:
    return np.array([x, y, z], dtype=np.float64)


def as_vec3(v: Sequence[float]) -> Vec3:
    """Copy a 3-element sequence into a float64 vector."""
    a = np.array(v, dtype=np.float64).reshape(-1)
    if a.shape != (3,):
        raise ValueError(f"Expected 3 components, got {a.shape[0]}")
    return a


def as_quat(q: Sequence[float]) -> Quat:
    """Copy a 4-element [x, y, z, w] sequence into a float64 quaternion."""
    a = np.array(q, dtype=np.float64).reshape(-1)
    if a.shape != (4,):
        raise ValueError(f"Expected 4 quaternion components, got {a.shape[0]}")
    return a


def mat4_identity() -> Mat4:
    return np.eye(4, dtype=np.float64)


def mat4_translation(x: float, y: float, z: float) -> Mat4:
    m = np.eye(4, dtype=np.float64)
    m[0, 3] = x
    m[1, 3] = y
    m[2, 3] = z
    return m


def mat4_scale(sx: float, sy: float, sz: float) -> Mat4:
    m = np.eye(4, dtype=np.float64)
    m[0, 0] = sx
    m[1, 1] = sy
    m[2, 2] = sz
    return m


def mat4_from_quaternion(q: Quat) -> Mat4:
    """Convert quaternion [x,y,z,w] to 4x4 rotation matrix."""
    x, y, z, w = q
    m = np.eye(4, dtype=np.float64)
    m[0, 0] = 1 - 2 * (y * y + z * z)
    m[0, 1] = 2 * (x * y - z * w)
    m[0, 2] = 2 * (x * z + y * w)
    m[1, 0] = 2 * (x * y + z * w)
    m[1, 1] = 1 - 2 * (x * x + z * z)
    m[1, 2] = 2 * (y * z - x * w)
    m[2, 0] = 2 * (x * z - y * w)
    m[2, 1] = 2 * (y * z + x * w)
    m[2, 2] = 1 - 2 * (x * x + y * y)
    return m


def mat4_compose(position: Vec3, quaternion: Quat, scale: Vec3) -> Mat4:
    """Compose TRS matrix: translate(rotate(scale(p)))."""
    m = mat4_from_quaternion(quaternion)
    m[:3, 0] *= scale[0]
    m[:3, 1] *= scale[1]
    m[:3, 2] *= scale[2]
    m[:3, 3] = position
    return m


def mat4_compose_inverse(position: Vec3, quaternion: Quat, scale: Vec3) -> Mat4:
    """Exact inverse of ``mat4_compose``: scale^-1 * rotate^-1 * translate^-1.

    Requires every scale component to be non-zero.
    """
    m = mat4_from_quaternion(quat_conjugate(quaternion))
    m[0, :3] /= scale[0]
    m[1, :3] /= scale[1]
    m[2, :3] /= scale[2]
    m[:3, 3] = -(m[:3, :3] @ position)
    return m


def mat4_inverse(m: Mat4) -> Mat4:
    return np.linalg.inv(m)


def mat4_to_gl(m: Mat4) -> NDArray[np.float32]:
    """Pack a single matrix as 16 column-major float32 values."""
    return np.ascontiguousarray(m.T, dtype=GL_MATRIX_DTYPE).reshape(16)


def mat4_array_to_gl(mats: NDArray) -> NDArray[np.float32]:
    """Pack an (N, 4, 4) matrix stack as N*16 column-major float32 values."""
    return np.ascontiguousarray(mats.transpose(0, 2, 1), dtype=GL_MATRIX_DTYPE).reshape(-1)


# Quaternion operations

def quat_identity() -> Quat:
    return np.array([0.0, 0.0, 0.0, 1.0], dtype=np.float64)


def quat_from_axis_angle(axis: Vec3, angle: float) -> Quat:
    """Create quaternion from axis-angle."""
    half = angle / 2
    s = np.sin(half)
    a = normalize(np.asarray(axis, dtype=np.float64))
    return np.array([a[0] * s, a[1] * s, a[2] * s, np.cos(half)], dtype=np.float64)


def quat_multiply(a: Quat, b: Quat) -> Quat:
    """Multiply two quaternions (a * b): rotate by b, then by a."""
    ax, ay, az, aw = a
    bx, by, bz, bw = b
    return np.array([
        aw * bx + ax * bw + ay * bz - az * by,
        aw * by - ax * bz + ay * bw + az * bx,
        aw * bz + ax * by - ay * bx + az * bw,
        aw * bw - ax * bx - ay * by - az * bz,
    ], dtype=np.float64)


def quat_conjugate(q: Quat) -> Quat:
    return np.array([-q[0], -q[1], -q[2], q[3]], dtype=np.float64)


def quat_normalize(q: Quat) -> Quat:
    n = np.linalg.norm(q)
    if n < EPSILON:
        return quat_identity()
    return q / n


def quat_nlerp(a: Quat, b: Quat, t: float) -> Quat:
    """Normalized linear interpolation, taking the short way round."""
    if np.dot(a, b) < 0:
        b = -b
    return quat_normalize(a + t * (b - a))


def quat_slerp(a: Quat, b: Quat, t: float) -> Quat:
    """Spherical linear interpolation between two quaternions."""
    dot = np.dot(a, b)
    if dot < 0:
        b = -b
        dot = -dot
    if dot > SLERP_LINEAR_THRESHOLD:
        return quat_normalize(a + t * (b - a))
    theta = np.arccos(np.clip(dot, -1.0, 1.0))
    sin_theta = np.sin(theta)
    if sin_theta < EPSILON:
        return a.copy()
    wa = np.sin((1 - t) * theta) / sin_theta
    wb = np.sin(t * theta) / sin_theta
    return quat_normalize(wa * a + wb * b)


def quat_distance(a: Quat, b: Quat) -> float:
    """Approximate rotational distance in [0, 1]; q and -q are the same rotation."""
    return float(1.0 - min(1.0, abs(np.dot(a, b))))


def quat_rotate_vec3(q: Quat, v: Vec3) -> Vec3:
    """Rotate a vector by a quaternion."""
    qv = q[:3]
    w = q[3]
    t = 2.0 * np.cross(qv, v)
    return v + w * t + np.cross(qv, t)


# Vector operations

def normalize(v: Vec3) -> Vec3:
    n = np.linalg.norm(v)
    if n < EPSILON:
        return np.zeros_like(v)
    return v / n


def lerp_vec3(a: Vec3, b: Vec3, t: float) -> Vec3:
    return a + (b - a) * t


def transform_point(m: Mat4, p: Vec3) -> Vec3:
    """Transform a point by a 4x4 matrix."""
    v = np.array([p[0], p[1], p[2], 1.0], dtype=np.float64)
    r = m @ v
    return r[:3]
