"""Planar geometry for robot poses.

The value types (Rotation2d, Translation2d, Transform2d, Pose2d, Twist2d) use
closed-form SE(2) maps and are what the estimator works with. The se2_*
matrix helpers and pose_to_matrix / matrix_to_pose are a public utility
surface for callers that work with homogeneous matrices, and serve as a
scipy.linalg reference for checking the closed forms.
"""

import math

import numpy as np
from scipy.linalg import expm, logm

# Below this magnitude the exp/log maps switch to their Taylor expansions.
_SMALL_ANGLE = 1e-9
_EPSILON = 1e-9


def angle_modulus(angle):
    """
    Wraps an angle into (-pi, pi].
    angle: float, radians
    Returns: float, wrapped angle in radians
    """
    wrapped = math.remainder(angle, 2.0 * math.pi)
    if wrapped == -math.pi:
        return math.pi
    return wrapped


class Rotation2d:
    """A planar rotation, stored as its angle together with cos/sin."""

    __slots__ = ("_value", "_cos", "_sin")

    def __init__(self, radians=0.0):
        self._value = float(radians)
        self._cos = math.cos(self._value)
        self._sin = math.sin(self._value)

    @classmethod
    def from_degrees(cls, degrees):
        return cls(math.radians(degrees))

    @classmethod
    def from_components(cls, x, y):
        """
        Builds a rotation from a (not necessarily normalized) direction vector.
        A zero vector gives the identity rotation.
        """
        if math.hypot(x, y) <= _EPSILON:
            return cls(0.0)
        return cls(math.atan2(y, x))

    @property
    def radians(self):
        return self._value

    @property
    def degrees(self):
        return math.degrees(self._value)

    @property
    def cos(self):
        return self._cos

    @property
    def sin(self):
        return self._sin

    def rotate_by(self, other):
        return Rotation2d.from_components(
            self._cos * other.cos - self._sin * other.sin,
            self._cos * other.sin + self._sin * other.cos,
        )

    def __add__(self, other):
        return self.rotate_by(other)

    def __sub__(self, other):
        # Result is wrapped, so this is the shortest signed angle from other to self.
        return self.rotate_by(-other)

    def __neg__(self):
        return Rotation2d(-self._value)

    def __mul__(self, scalar):
        return Rotation2d(self._value * scalar)

    def interpolate(self, end, t):
        """
        Shortest-angle interpolation towards `end`.
        t: float, clamped to [0, 1]
        """
        t = min(max(t, 0.0), 1.0)
        return self + (end - self) * t

    def __eq__(self, other):
        if not isinstance(other, Rotation2d):
            return NotImplemented
        return math.hypot(self._cos - other.cos, self._sin - other.sin) < _EPSILON

    __hash__ = None

    def __repr__(self):
        return f"Rotation2d(radians={self._value:.6f})"


class Translation2d:
    """A 2D vector in meters."""

    __slots__ = ("_x", "_y")

    def __init__(self, x=0.0, y=0.0):
        self._x = float(x)
        self._y = float(y)

    @classmethod
    def from_polar(cls, distance, angle):
        return cls(distance * angle.cos, distance * angle.sin)

    @property
    def x(self):
        return self._x

    @property
    def y(self):
        return self._y

    @property
    def norm(self):
        return math.hypot(self._x, self._y)

    @property
    def angle(self):
        return Rotation2d.from_components(self._x, self._y)

    def distance(self, other):
        return math.hypot(other.x - self._x, other.y - self._y)

    def rotate_by(self, rotation):
        return Translation2d(
            self._x * rotation.cos - self._y * rotation.sin,
            self._x * rotation.sin + self._y * rotation.cos,
        )

    def __add__(self, other):
        return Translation2d(self._x + other.x, self._y + other.y)

    def __sub__(self, other):
        return Translation2d(self._x - other.x, self._y - other.y)

    def __neg__(self):
        return Translation2d(-self._x, -self._y)

    def __mul__(self, scalar):
        return Translation2d(self._x * scalar, self._y * scalar)

    def __truediv__(self, scalar):
        return Translation2d(self._x / scalar, self._y / scalar)

    def interpolate(self, end, t):
        t = min(max(t, 0.0), 1.0)
        return self + (end - self) * t

    def as_array(self):
        return np.array([self._x, self._y])

    def __eq__(self, other):
        if not isinstance(other, Translation2d):
            return NotImplemented
        return abs(self._x - other.x) < _EPSILON and abs(self._y - other.y) < _EPSILON

    __hash__ = None

    def __repr__(self):
        return f"Translation2d(x={self._x:.6f}, y={self._y:.6f})"


class Transform2d:
    """
    A rigid transformation expressed in the frame of the pose it is applied to.

    Transform2d(translation, rotation) builds one directly;
    Transform2d.between(initial, final) builds the transform that maps
    `initial` onto `final`.
    """

    __slots__ = ("_translation", "_rotation")

    def __init__(self, translation=None, rotation=None):
        self._translation = translation if translation is not None else Translation2d()
        self._rotation = rotation if rotation is not None else Rotation2d()

    @classmethod
    def between(cls, initial, final):
        translation = (final.translation - initial.translation).rotate_by(-initial.rotation)
        return cls(translation, final.rotation - initial.rotation)

    @property
    def translation(self):
        return self._translation

    @property
    def rotation(self):
        return self._rotation

    @property
    def x(self):
        return self._translation.x

    @property
    def y(self):
        return self._translation.y

    def inverse(self):
        return Transform2d((-self._translation).rotate_by(-self._rotation), -self._rotation)

    def __add__(self, other):
        # Chained composition: apply self, then other.
        return Transform2d.between(Pose2d(), Pose2d() + self + other)

    def __mul__(self, scalar):
        return Transform2d(self._translation * scalar, self._rotation * scalar)

    def __eq__(self, other):
        if not isinstance(other, Transform2d):
            return NotImplemented
        return self._translation == other.translation and self._rotation == other.rotation

    __hash__ = None

    def __repr__(self):
        return f"Transform2d({self._translation!r}, {self._rotation!r})"


class Twist2d:
    """
    A body-frame change in pose along an arc (dx, dy, dtheta).
    """

    __slots__ = ("dx", "dy", "dtheta")

    def __init__(self, dx=0.0, dy=0.0, dtheta=0.0):
        self.dx = float(dx)
        self.dy = float(dy)
        self.dtheta = float(dtheta)

    @classmethod
    def from_vector(cls, xi):
        xi = np.asarray(xi, dtype=float)
        if xi.shape != (3,):
            raise ValueError("Twist vector must be a (3,) array.")
        return cls(xi[0], xi[1], xi[2])

    def as_vector(self):
        return np.array([self.dx, self.dy, self.dtheta])

    def __mul__(self, scalar):
        return Twist2d(self.dx * scalar, self.dy * scalar, self.dtheta * scalar)

    def __eq__(self, other):
        if not isinstance(other, Twist2d):
            return NotImplemented
        return (
            abs(self.dx - other.dx) < _EPSILON
            and abs(self.dy - other.dy) < _EPSILON
            and abs(angle_modulus(self.dtheta - other.dtheta)) < _EPSILON
        )

    __hash__ = None

    def __repr__(self):
        return f"Twist2d(dx={self.dx:.6f}, dy={self.dy:.6f}, dtheta={self.dtheta:.6f})"


class Pose2d:
    """
    A robot pose on the field: translation in meters plus heading.

    Pose2d(x, y, rotation) or Pose2d.from_parts(translation, rotation).
    `rotation` may be a Rotation2d or a float in radians.
    """

    __slots__ = ("_translation", "_rotation")

    def __init__(self, x=0.0, y=0.0, rotation=None):
        if rotation is None:
            rotation = Rotation2d()
        elif not isinstance(rotation, Rotation2d):
            rotation = Rotation2d(rotation)
        self._translation = Translation2d(x, y)
        self._rotation = rotation

    @classmethod
    def from_parts(cls, translation, rotation):
        return cls(translation.x, translation.y, rotation)

    @property
    def translation(self):
        return self._translation

    @property
    def rotation(self):
        return self._rotation

    @property
    def x(self):
        return self._translation.x

    @property
    def y(self):
        return self._translation.y

    def transform_by(self, transform):
        return Pose2d.from_parts(
            self._translation + transform.translation.rotate_by(self._rotation),
            transform.rotation + self._rotation,
        )

    def __add__(self, transform):
        return self.transform_by(transform)

    def __sub__(self, other):
        """pose - other: the Transform2d that maps `other` onto this pose."""
        return Transform2d.between(other, self)

    def relative_to(self, other):
        transform = Transform2d.between(other, self)
        return Pose2d.from_parts(transform.translation, transform.rotation)

    def exp(self, twist):
        """
        Applies a body-frame twist to this pose (SE(2) exponential map).
        twist: Twist2d
        Returns: Pose2d reached by following the constant-curvature arc.
        """
        dx, dy, dtheta = twist.dx, twist.dy, twist.dtheta
        sin_theta = math.sin(dtheta)
        cos_theta = math.cos(dtheta)

        if abs(dtheta) < _SMALL_ANGLE:
            s = 1.0 - dtheta * dtheta / 6.0
            c = 0.5 * dtheta
        else:
            s = sin_theta / dtheta
            c = (1.0 - cos_theta) / dtheta

        delta = Transform2d(
            Translation2d(dx * s - dy * c, dx * c + dy * s),
            Rotation2d(dtheta),
        )
        return self + delta

    def log(self, end):
        """
        Inverse of exp: the twist that carries this pose onto `end`.
        end: Pose2d
        Returns: Twist2d
        """
        transform = end.relative_to(self)
        dtheta = transform.rotation.radians
        half_dtheta = dtheta / 2.0
        cos_minus_one = transform.rotation.cos - 1.0

        if abs(cos_minus_one) < _SMALL_ANGLE:
            half_theta_by_tan = 1.0 - dtheta * dtheta / 12.0
        else:
            half_theta_by_tan = -(half_dtheta * transform.rotation.sin) / cos_minus_one

        translation_part = transform.translation.rotate_by(
            Rotation2d.from_components(half_theta_by_tan, -half_dtheta)
        ) * math.hypot(half_theta_by_tan, half_dtheta)

        return Twist2d(translation_part.x, translation_part.y, dtheta)

    def interpolate(self, end, t):
        """
        Interpolates towards `end`: translation linearly, heading along the
        shortest arc.
        t: float, clamped to [0, 1]
        """
        if t <= 0.0:
            return self
        if t >= 1.0:
            return end
        return Pose2d.from_parts(
            self._translation.interpolate(end.translation, t),
            self._rotation.interpolate(end.rotation, t),
        )

    def as_vector(self):
        return np.array([self.x, self.y, self._rotation.radians])

    def __eq__(self, other):
        if not isinstance(other, Pose2d):
            return NotImplemented
        return self._translation == other.translation and self._rotation == other.rotation

    __hash__ = None

    def __repr__(self):
        return f"Pose2d(x={self.x:.6f}, y={self.y:.6f}, rotation={self._rotation!r})"


# SE(2) operations (represented as 3x3 homogeneous matrices)

def se2_hat(xi):
    """
    Maps a 3-vector xi (twist coordinates: dx, dy, dtheta) to its
    3x3 matrix representation in se(2).
    xi: (3,) array
    Returns: (3,3) matrix in se(2)
    """
    xi = np.asarray(xi, dtype=float)
    if xi.shape != (3,):
        raise ValueError("Input xi must be a (3,) numpy array.")
    return np.array([
        [0.0, -xi[2], xi[0]],
        [xi[2], 0.0, xi[1]],
        [0.0, 0.0, 0.0],
    ])


def se2_vee(Xi_hat):
    """
    Maps a 3x3 matrix in se(2) back to its twist coordinates.
    Xi_hat: (3,3) matrix in se(2)
    Returns: (3,) array [dx, dy, dtheta]
    """
    if not isinstance(Xi_hat, np.ndarray) or Xi_hat.shape != (3, 3):
        raise ValueError("Input Xi_hat must be a (3,3) numpy array.")
    if not np.allclose(Xi_hat[2, :], 0):
        raise ValueError("Input Xi_hat must have its bottom row as zeros for se(2).")
    # Average the two off-diagonal terms to absorb numerical noise from logm.
    dtheta = (Xi_hat[1, 0] - Xi_hat[0, 1]) / 2.0
    return np.array([Xi_hat[0, 2], Xi_hat[1, 2], dtheta])


def se2_exp(xi_hat):
    """
    Matrix exponential of an se(2) element.
    xi_hat: (3,3) matrix (se(2) element)
    Returns: (3,3) homogeneous transformation matrix (SE(2) element)
    """
    if not isinstance(xi_hat, np.ndarray) or xi_hat.shape != (3, 3):
        raise ValueError("Input xi_hat must be a (3,3) numpy array.")
    return expm(xi_hat)


def se2_log(T):
    """
    Matrix logarithm of an SE(2) element.
    T: (3,3) homogeneous transformation matrix
    Returns: (3,3) matrix (se(2) element)
    """
    if not isinstance(T, np.ndarray) or T.shape != (3, 3):
        raise ValueError("Input T must be a (3,3) numpy array.")
    log_T = np.real(logm(T))

    result = np.zeros((3, 3))
    skew = (log_T[:2, :2] - log_T[:2, :2].T) / 2.0
    result[:2, :2] = skew
    result[:2, 2] = log_T[:2, 2]
    return result


def pose_to_matrix(pose):
    """Pose2d -> (3,3) homogeneous matrix."""
    c, s = pose.rotation.cos, pose.rotation.sin
    return np.array([
        [c, -s, pose.x],
        [s, c, pose.y],
        [0.0, 0.0, 1.0],
    ])


def matrix_to_pose(T):
    """(3,3) homogeneous matrix -> Pose2d."""
    if not isinstance(T, np.ndarray) or T.shape != (3, 3):
        raise ValueError("Input T must be a (3,3) numpy array.")
    return Pose2d(T[0, 2], T[1, 2], Rotation2d.from_components(T[0, 0], T[1, 0]))
