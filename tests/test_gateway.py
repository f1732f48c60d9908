import pytest

from chemscf.gateway import (
    ANGSTROM_TO_BOHR,
    InputError,
    atomic_number,
    element_symbol,
    read_basis_set,
    read_chemical_potential,
    read_derivative,
    read_grid,
    read_guess,
    read_job_type,
    read_method,
    read_num_electrons,
    read_num_threads,
    read_scf,
    read_temperature,
    read_wfn_type,
    read_xyz,
)

WATER = """xyz
3
O 0.0 0.0 0.1
h 0.0 0.75 -0.5
H 0.0 -0.75 -0.5
basis
Def2-SVP
"""


def write(tmp_path, text):
    path = tmp_path / "job.inp"
    path.write_text(text)
    return path


def test_symbol_round_trip():
    for symbol in ("H", "He", "C", "Cl", "Fe", "Og"):
        assert element_symbol(atomic_number(symbol)) == symbol


def test_atomic_number_case_insensitive():
    assert atomic_number("cl") == atomic_number("CL") == atomic_number("Cl")


def test_unknown_symbol():
    with pytest.raises(ValueError):
        atomic_number("Xx")
    with pytest.raises(ValueError):
        element_symbol(0)


def test_read_xyz_units(tmp_path):
    atoms = read_xyz(write(tmp_path, WATER))
    assert len(atoms) == 3
    assert atoms[0][0] == atomic_number("O")
    assert atoms[0][0] == atoms[0][1]
    assert atoms[1][0] == atomic_number("H")
    assert atoms[1][3] == pytest.approx(0.75 * ANGSTROM_TO_BOHR)
    assert atoms[2][4] == pytest.approx(-0.5 * ANGSTROM_TO_BOHR)


def test_read_xyz_read_keyword(tmp_path):
    assert read_xyz(write(tmp_path, "XYZ\nread\n")) == []


def test_read_xyz_missing(tmp_path):
    with pytest.raises(InputError):
        read_xyz(write(tmp_path, "BASIS\nsto-3g\n"))


def test_read_xyz_missing_atom(tmp_path):
    with pytest.raises(InputError):
        read_xyz(write(tmp_path, "XYZ\n2\nH 0 0 0\n"))


def test_read_xyz_bad_count(tmp_path):
    with pytest.raises(InputError):
        read_xyz(write(tmp_path, "XYZ\n0\n"))


def test_basis_set_keeps_case(tmp_path):
    assert read_basis_set(write(tmp_path, WATER)) == "Def2-SVP"
    assert read_basis_set(write(tmp_path, "basis\nREAD\n")) == ""
    with pytest.raises(InputError):
        read_basis_set(write(tmp_path, "XYZ\nREAD\n"))


def test_num_electrons_closed_shell(tmp_path):
    na, nb = read_num_electrons(write(tmp_path, WATER))
    total = sum(atomic_number(s) for s in ("O", "H", "H"))
    assert na + nb == total
    assert na == nb


def test_num_electrons_charge_and_spin(tmp_path):
    path = write(tmp_path, WATER + "charge\n1\nspin\n2\n")
    na, nb = read_num_electrons(path)
    total = sum(atomic_number(s) for s in ("O", "H", "H"))
    assert na + nb == total - 1
    assert na - nb == 2 - 1


def test_num_electrons_incompatible(tmp_path):
    with pytest.raises(InputError):
        read_num_electrons(write(tmp_path, WATER + "spin\n2\n"))


def test_num_electrons_missing_charge(tmp_path):
    with pytest.raises(InputError):
        read_num_electrons(write(tmp_path, WATER + "charge\n\n"))


def test_defaults(tmp_path):
    path = write(tmp_path, WATER)
    assert read_method(path) == "HF"
    assert read_scf(path) == "DIIS"
    assert read_guess(path) == "SAP"
    assert read_job_type(path) == "SCF"
    assert read_grid(path) == ""
    assert read_num_threads(path) == 1
    assert read_wfn_type(path) == -1


def test_words_are_upper_cased(tmp_path):
    path = write(tmp_path, WATER + "method\npbe0\nguess\nread\nscftype\nnewton\ngrid\nfine\n")
    assert read_method(path) == "PBE0"
    assert read_guess(path) == "READ"
    assert read_scf(path) == "NEWTON"
    assert read_grid(path) == "FINE"


@pytest.mark.parametrize(
    "reader, text",
    [
        (read_job_type, "jobtype\nopt\n"),
        (read_scf, "scftype\nsteepest\n"),
        (read_guess, "guess\ncore\n"),
        (read_wfn_type, "wfntype\n2\n"),
        (read_num_threads, "nthreads\n0\n"),
        (read_derivative, "derivative\n-1\n"),
        (read_temperature, "temperature\n-5\n"),
    ],
)
def test_invalid_settings(tmp_path, reader, text):
    with pytest.raises(InputError):
        reader(write(tmp_path, text))


def test_numbers(tmp_path):
    path = write(
        tmp_path,
        "derivative\n2\ntemperature\n0.01\nchemicalpotential\n-0.25\nnthreads\n4\nwfntype\n1\n",
    )
    assert read_derivative(path) == 2
    assert read_temperature(path) == pytest.approx(0.01)
    assert read_chemical_potential(path) == pytest.approx(-0.25)
    assert read_num_threads(path) == 4
    assert read_wfn_type(path) == 1


def test_missing_value_at_end(tmp_path):
    with pytest.raises(InputError):
        read_temperature(write(tmp_path, "temperature\n"))