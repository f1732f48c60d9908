import numpy as np
import pytest

from chemscf.nuclear import (
    nuclear_repulsion,
    nuclear_repulsion_gradient,
    nuclear_repulsion_hessian,
)

WATER = np.array([
    [8.0, 0.0, 0.0, 0.2],
    [1.0, 0.0, 1.4, -0.9],
    [1.0, 0.1, -1.4, -0.9],
])


def test_two_protons():
    atoms = [[1, 0, 0, 0], [1, 0, 0, 2]]
    assert nuclear_repulsion(atoms) == pytest.approx(0.5)


def test_single_atom():
    atoms = [[6, 1, 2, 3]]
    assert nuclear_repulsion(atoms) == 0.0
    assert np.all(nuclear_repulsion_gradient(atoms) == 0)
    assert np.all(nuclear_repulsion_hessian(atoms) == 0)


def test_translation_invariance():
    shifted = WATER.copy()
    shifted[:, 1:] += [0.3, -1.1, 2.0]
    assert nuclear_repulsion(shifted) == pytest.approx(nuclear_repulsion(WATER))


def test_gradient_matches_finite_difference():
    gradient = nuclear_repulsion_gradient(WATER)
    h = 1e-5
    for atom in range(3):
        for axis in range(3):
            plus = WATER.copy()
            minus = WATER.copy()
            plus[atom, 1 + axis] += h
            minus[atom, 1 + axis] -= h
            numeric = (nuclear_repulsion(plus) - nuclear_repulsion(minus)) / (2 * h)
            assert gradient[atom, axis] == pytest.approx(numeric, rel=1e-6, abs=1e-8)


def test_gradient_sums_to_zero():
    assert np.allclose(nuclear_repulsion_gradient(WATER).sum(axis=0), 0)


def test_hessian_matches_finite_difference():
    hessian = nuclear_repulsion_hessian(WATER)
    h = 1e-5
    for atom in range(3):
        for axis in range(3):
            plus = WATER.copy()
            minus = WATER.copy()
            plus[atom, 1 + axis] += h
            minus[atom, 1 + axis] -= h
            numeric = (
                nuclear_repulsion_gradient(plus) - nuclear_repulsion_gradient(minus)
            ).ravel() / (2 * h)
            assert np.allclose(hessian[:, 3 * atom + axis], numeric, rtol=1e-5, atol=1e-7)


def test_hessian_symmetric_and_translation_null():
    hessian = nuclear_repulsion_hessian(WATER)
    assert hessian.shape == (9, 9)
    assert np.allclose(hessian, hessian.T)
    translation = np.tile([1.0, 0.0, 0.0], 3)
    assert np.allclose(hessian @ translation, 0)