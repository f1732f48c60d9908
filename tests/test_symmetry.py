import math

import numpy as np
import pytest

from chemscf.symmetry import (
    Atom,
    atomic_mass,
    coordinates,
    find_image,
    has_inversion_centre,
    horizontal_c2_axis,
    horizontal_mirror,
    is_improper_axis,
    is_mirror,
    is_proper_axis,
    with_coordinates,
)

TOL = 0.01
X = (1.0, 0.0, 0.0)
Y = (0.0, 1.0, 0.0)
Z = (0.0, 0.0, 1.0)


def water():
    return [
        Atom(8, 0.0, 0.0, 0.1),
        Atom(1, 1.4, 0.0, -0.9),
        Atom(1, -1.4, 0.0, -0.9),
    ]


def hexagon():
    return [
        Atom(6, 2.6 * math.cos(k * math.pi / 3), 2.6 * math.sin(k * math.pi / 3), 0.0)
        for k in range(6)
    ]


def linear_on_z():
    return [Atom(1, 0.0, 0.0, -0.7), Atom(1, 0.0, 0.0, 0.7)]


def test_atomic_mass_values_from_table():
    assert atomic_mass(6) == 12.010
    assert atomic_mass(1) == 1.0079


def test_atomic_mass_unknown_element():
    with pytest.raises(ValueError):
        atomic_mass(19)


def test_coordinates_round_trip():
    atoms = water()
    coords = coordinates(atoms)
    assert coords.shape == (3, 3)
    assert with_coordinates(atoms, coords) == atoms


def test_with_coordinates_moves_atoms_and_keeps_elements():
    atoms = water()
    moved = with_coordinates(atoms, -coordinates(atoms))
    assert [a.atomic_number for a in moved] == [a.atomic_number for a in atoms]
    np.testing.assert_allclose(coordinates(moved), -coordinates(atoms))


def test_with_coordinates_shape_mismatch():
    with pytest.raises(ValueError):
        with_coordinates(water(), np.zeros((3, 2)))


def test_find_image_matches_same_element():
    atoms = water()
    mirrored = with_coordinates(atoms, np.diag([-1.0, 1.0, 1.0]) @ coordinates(atoms))
    assert find_image(atoms[1], mirrored, TOL) == 2
    assert find_image(atoms[0], mirrored, TOL) == 0


def test_find_image_ignores_other_elements():
    assert find_image(Atom(1, 0.0, 0.0, 0.0), [Atom(8, 0.0, 0.0, 0.0)], TOL) is None


def test_find_image_rejects_distant_atom():
    assert find_image(Atom(1, 0.0, 0.0, 0.0), [Atom(1, 1.0, 0.0, 0.0)], TOL) is None


def test_water_symmetry_elements():
    atoms = water()
    assert is_mirror(atoms, X, TOL)
    assert is_mirror(atoms, Y, TOL)
    assert not is_mirror(atoms, Z, TOL)
    assert is_proper_axis(atoms, Z, 2, TOL)
    assert not is_proper_axis(atoms, X, 2, TOL)
    assert not has_inversion_centre(atoms, TOL)
    assert not is_improper_axis(atoms, Z, 2, TOL)


def test_hexagon_axes_and_inversion():
    atoms = hexagon()
    assert has_inversion_centre(atoms, TOL)
    assert is_proper_axis(atoms, Z, 6, TOL)
    assert is_proper_axis(atoms, Z, 3, TOL)
    assert not is_proper_axis(atoms, Z, 4, TOL)
    assert is_improper_axis(atoms, Z, 6, TOL)
    assert is_mirror(atoms, Z, TOL)


def test_proper_axis_rejects_nonpositive_manifold():
    with pytest.raises(ValueError):
        is_proper_axis(water(), Z, 0, TOL)


def test_horizontal_c2_axis_of_hexagon():
    axis = horizontal_c2_axis(hexagon(), TOL)
    np.testing.assert_allclose(axis, [1.0, 0.0, 0.0], atol=1e-12)
    assert is_proper_axis(hexagon(), axis, 2, TOL)


def test_horizontal_mirror_of_hexagon():
    normal = horizontal_mirror(hexagon(), TOL)
    np.testing.assert_allclose(normal, [0.0, -1.0, 0.0], atol=1e-12)
    assert abs(normal[2]) == 0.0


def test_no_horizontal_elements_when_atoms_on_axis():
    atoms = linear_on_z()
    assert horizontal_c2_axis(atoms, TOL) is None
    assert horizontal_mirror(atoms, TOL) is None


def test_horizontal_mirror_of_water_contains_atoms():
    atoms = water()
    normal = horizontal_mirror(atoms, TOL)
    assert is_mirror(atoms, normal, TOL)
    assert math.isclose(float(np.linalg.norm(normal)), 1.0)