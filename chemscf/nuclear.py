"""Nuclear repulsion energy and its first and second nuclear derivatives.

Atoms are given as rows ``(Z, x, y, z)`` with coordinates in bohr.
"""

from __future__ import annotations

from itertools import permutations

import numpy as np


def _split(atoms) -> tuple[np.ndarray, np.ndarray]:
    table = np.asarray(atoms, dtype=float).reshape(-1, 4)
    return table[:, 0], table[:, 1:]


def nuclear_repulsion(atoms) -> float:
    """Return the nuclear repulsion energy in hartree."""
    charges, positions = _split(atoms)
    energy = 0.0
    for i in range(len(charges)):
        for j in range(i):
            distance = np.linalg.norm(positions[i] - positions[j])
            energy += charges[i] * charges[j] / distance
    return float(energy)


def nuclear_repulsion_gradient(atoms) -> np.ndarray:
    """Return the gradient as an ``(natoms, 3)`` array."""
    charges, positions = _split(atoms)
    gradient = np.zeros_like(positions)
    for i, j in permutations(range(len(charges)), 2):
        r = positions[i] - positions[j]
        d = np.linalg.norm(r)
        gradient[i] -= charges[i] * charges[j] / d**3 * r
    return gradient


def nuclear_repulsion_hessian(atoms) -> np.ndarray:
    """Return the Hessian as a ``(3 natoms, 3 natoms)`` array."""
    charges, positions = _split(atoms)
    n = len(charges)
    hessian = np.zeros((3 * n, 3 * n))
    identity = np.eye(3)
    for i, j in permutations(range(n), 2):
        r = positions[i] - positions[j]
        d = np.linalg.norm(r)
        zz = charges[i] * charges[j]
        block = zz / d**3 * identity - 3.0 * zz / d**5 * np.outer(r, r)
        hessian[3 * i:3 * i + 3, 3 * j:3 * j + 3] = block
        hessian[3 * i:3 * i + 3, 3 * i:3 * i + 3] -= block
    return hessian