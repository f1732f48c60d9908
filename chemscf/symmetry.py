"""Testing molecular geometries for symmetry elements.

Atoms are :class:`Atom` records with coordinates in bohr.  Coordinates of a
whole molecule are handled as ``(3, natoms)`` arrays.  Axes and mirror
normals are unit vectors through the origin.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Sequence

import numpy as np

_ATOMIC_MASSES = {
    1: 1.0079, 2: 4.0026, 3: 6.9412, 4: 9.0121, 5: 10.811, 6: 12.010,
    7: 14.006, 8: 15.999, 9: 18.998, 10: 20.179, 11: 22.989, 12: 24.305,
    13: 26.981, 14: 28.085, 15: 30.973, 16: 32.065, 17: 35.453, 18: 39.948,
}


@dataclass(frozen=True)
class Atom:
    """A nucleus with its atomic number and position."""

    atomic_number: int
    x: float
    y: float
    z: float

    @property
    def position(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=float)


def atomic_mass(z: int) -> float:
    """Return the average atomic mass of elements H to Ar."""
    try:
        return _ATOMIC_MASSES[int(z)]
    except KeyError:
        raise ValueError(f"No atomic mass for atomic number {z}") from None


def coordinates(atoms: Sequence[Atom]) -> np.ndarray:
    """Coordinates as a ``(3, natoms)`` array."""
    if not atoms:
        return np.zeros((3, 0))
    return np.array([[a.x, a.y, a.z] for a in atoms], dtype=float).T


def with_coordinates(atoms: Sequence[Atom], coords) -> list[Atom]:
    """Copies of ``atoms`` moved to the columns of ``coords``."""
    coords = np.asarray(coords, dtype=float)
    if coords.shape != (3, len(atoms)):
        raise ValueError(f"Expected coordinates of shape (3, {len(atoms)}), got {coords.shape}")
    return [
        replace(atom, x=float(x), y=float(y), z=float(z))
        for atom, (x, y, z) in zip(atoms, coords.T)
    ]


def _reflection(normal) -> np.ndarray:
    n = np.asarray(normal, dtype=float)
    return np.eye(3) - 2.0 * np.outer(n, n)


def _rotation(axis, angle: float) -> np.ndarray:
    u = np.asarray(axis, dtype=float)
    c, s = math.cos(angle), math.sin(angle)
    cross = np.array([
        [0.0, -u[2], u[1]],
        [u[2], 0.0, -u[0]],
        [-u[1], u[0], 0.0],
    ])
    return c * np.eye(3) + s * cross + (1.0 - c) * np.outer(u, u)


def find_image(atom: Atom, projections: Sequence[Atom], tolerance: float) -> int | None:
    """Index of the projected atom that coincides with ``atom``, or None.

    Only projections of the same element are considered; the nearest one is
    accepted if its scaled deviation is within tolerance.
    """
    here = atom.position
    nearest: int | None = None
    nearest_d2 = math.inf
    for index, candidate in enumerate(projections):
        if candidate.atomic_number != atom.atomic_number:
            continue
        deviation = here - candidate.position
        d2 = float(deviation @ deviation)
        if d2 < nearest_d2:
            nearest, nearest_d2 = index, d2
    if nearest is None:
        return None
    tol2 = tolerance * tolerance
    if nearest_d2 / (nearest_d2 + tol2) < tol2:
        return nearest
    return None


def _invariant(atoms: Sequence[Atom], operation: np.ndarray, tolerance: float) -> bool:
    projections = with_coordinates(atoms, operation @ coordinates(atoms))
    return all(find_image(atom, projections, tolerance) is not None for atom in atoms)


def has_inversion_centre(atoms: Sequence[Atom], tolerance: float) -> bool:
    """Whether the origin is an inversion centre of the molecule."""
    return _invariant(atoms, -np.eye(3), tolerance)


def is_mirror(atoms: Sequence[Atom], normal, tolerance: float) -> bool:
    """Whether the plane through the origin with this normal is a mirror."""
    return _invariant(atoms, _reflection(normal), tolerance)


def is_proper_axis(atoms: Sequence[Atom], axis, manifold: int, tolerance: float) -> bool:
    """Whether ``axis`` is a C_n axis with n = ``manifold``."""
    if manifold < 1:
        raise ValueError("Manifold must be positive")
    angle = 2.0 * math.pi / manifold
    return all(
        _invariant(atoms, _rotation(axis, exponent * angle), tolerance)
        for exponent in range(1, manifold)
    )


def is_improper_axis(atoms: Sequence[Atom], axis, manifold: int, tolerance: float) -> bool:
    """Whether ``axis`` is an S_n axis with n = ``manifold`` (odd powers tested)."""
    if manifold < 1:
        raise ValueError("Manifold must be positive")
    angle = 2.0 * math.pi / manifold
    reflection = _reflection(axis)
    return all(
        _invariant(atoms, _rotation(axis, exponent * angle) @ reflection, tolerance)
        for exponent in range(1, manifold, 2)
    )


def _off_axis(atom: Atom, tol2: float) -> bool:
    return atom.x * atom.x + atom.y * atom.y >= tol2


def _pair_candidates(atoms: Sequence[Atom], tol2: float, include_self: bool):
    """Pairs of off-axis atoms whose midpoint projection is off the z axis."""
    for i, ai in enumerate(atoms):
        if not _off_axis(ai, tol2):
            continue
        start = i if include_self else i + 1
        for aj in atoms[start:]:
            if not _off_axis(aj, tol2):
                continue
            if ((ai.x + aj.x) ** 2 + (ai.y + aj.y) ** 2) / 4.0 < tol2:
                continue
            yield ai, aj


def _unit(vector) -> np.ndarray:
    v = np.asarray(vector, dtype=float)
    return v / np.linalg.norm(v)


def horizontal_c2_axis(atoms: Sequence[Atom], tolerance: float) -> np.ndarray | None:
    """A C2 axis in the xy plane, or None if there is none.

    Candidates pass through an in-plane atom or the midpoint of two like
    atoms placed symmetrically about the xy plane.
    """
    tol2 = tolerance * tolerance
    for ai, aj in _pair_candidates(atoms, tol2, include_self=True):
        if ai.atomic_number == aj.atomic_number and (ai.z + aj.z) ** 2 < tol2:
            axis = _unit((ai.x + aj.x, ai.y + aj.y, 0.0))
            if is_proper_axis(atoms, axis, 2, tolerance):
                return axis
    return None


def horizontal_mirror(atoms: Sequence[Atom], tolerance: float) -> np.ndarray | None:
    """Normal of a mirror containing the z axis, or None if there is none.

    Planes through an atom are tried first, then planes between like atoms
    at the same height.
    """
    tol2 = tolerance * tolerance
    for atom in atoms:
        if not _off_axis(atom, tol2):
            continue
        normal = _unit((atom.y, -atom.x, 0.0))
        if is_mirror(atoms, normal, tolerance):
            return normal
    for ai, aj in _pair_candidates(atoms, tol2, include_self=False):
        if ai.atomic_number == aj.atomic_number and (ai.z - aj.z) ** 2 < tol2:
            normal = _unit((ai.y + aj.y, -(ai.x + aj.x), 0.0))
            if is_mirror(atoms, normal, tolerance):
                return normal
    return None