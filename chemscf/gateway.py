"""Reading job settings and geometries from a keyword-style input file.

The input file is made of sections: a line holding a keyword (matched
case-insensitively) followed by a line holding its value.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Callable, TypeVar

ANGSTROM_TO_BOHR = 1.8897259886

_SYMBOLS = (
    "H He Li Be B C N O F Ne Na Mg Al Si P S Cl Ar K Ca Sc Ti V Cr Mn Fe Co Ni "
    "Cu Zn Ga Ge As Se Br Kr Rb Sr Y Zr Nb Mo Tc Ru Rh Pd Ag Cd In Sn Sb Te I Xe "
    "Cs Ba La Ce Pr Nd Pm Sm Eu Gd Tb Dy Ho Er Tm Yb Lu Hf Ta W Re Os Ir Pt Au "
    "Hg Tl Pb Bi Po At Rn Fr Ra Ac Th Pa U Np Pu Am Cm Bk Cf Es Fm Md No Lr Rf "
    "Db Sg Bh Hs Mt Ds Rg Cn Nh Fl Mc Lv Ts Og"
).split()

_Z_BY_SYMBOL = {symbol.upper(): z for z, symbol in enumerate(_SYMBOLS, start=1)}

T = TypeVar("T")


class InputError(ValueError):
    """Raised when the input file is missing data or holds invalid settings."""


def atomic_number(symbol: str) -> int:
    """Return the atomic number of an element symbol (case-insensitive)."""
    try:
        return _Z_BY_SYMBOL[symbol.strip().upper()]
    except KeyError:
        raise ValueError(f"Unknown element symbol: {symbol!r}") from None


def element_symbol(z: int) -> str:
    """Return the element symbol for an atomic number."""
    if not 1 <= z <= len(_SYMBOLS):
        raise ValueError(f"No element with atomic number {z}")
    return _SYMBOLS[z - 1]


def _lines(path) -> list[str]:
    return Path(path).read_text().splitlines()


def _section(lines: list[str], keyword: str) -> int | None:
    """Index of the line after the first line equal to ``keyword``, or None."""
    for index, line in enumerate(lines):
        if line.strip().upper() == keyword:
            return index + 1
    return None


def _line_at(lines: list[str], index: int) -> str:
    return lines[index].rstrip("\r\n") if index < len(lines) else ""


def _value_line(path, keyword: str) -> str | None:
    """The raw line following ``keyword``; None if the keyword is absent."""
    lines = _lines(path)
    index = _section(lines, keyword)
    if index is None:
        return None
    return _line_at(lines, index)


def _parse(line: str, convert: Callable[[str], T], what: str) -> T:
    tokens = line.split()
    if not tokens:
        raise InputError(f"Missing {what}!")
    try:
        return convert(tokens[0])
    except ValueError:
        raise InputError(f"Invalid {what}: {tokens[0]!r}") from None


def read_xyz(path) -> list[list[float]]:
    """Read the XYZ section as rows ``[Z, Z, x, y, z]`` with coordinates in bohr.

    Returns an empty list when the geometry is to be read from elsewhere.
    """
    lines = _lines(path)
    index = _section(lines, "XYZ")
    if index is None:
        raise InputError("Missing atomic coordinates")
    header = _line_at(lines, index).strip().upper()
    if header == "READ":
        return []
    natoms = _parse(header, int, "number of atoms") if header else 0
    if natoms <= 0:
        raise InputError("Invalid number of atoms!")
    atoms = []
    for offset in range(1, natoms + 1):
        line = _line_at(lines, index + offset).upper()
        if not line:
            raise InputError("Missing atom!")
        tokens = line.split()
        try:
            z = float(atomic_number(tokens[0]))
        except ValueError as error:
            raise InputError(str(error)) from None
        try:
            x, y, w = (float(token) for token in tokens[1:4])
        except ValueError:
            raise InputError(f"Invalid coordinates: {line!r}") from None
        atoms.append([z, z, x * ANGSTROM_TO_BOHR, y * ANGSTROM_TO_BOHR, w * ANGSTROM_TO_BOHR])
    return atoms


def read_basis_set(path) -> str:
    """Read the basis-set name; an empty string means it is to be read elsewhere."""
    line = _value_line(path, "BASIS")
    if line is not None:
        if line.strip().upper() == "READ":
            return ""
        tokens = line.split()
        if tokens:
            return tokens[0]
    raise InputError("Missing basis set name!")


def read_num_electrons(path) -> tuple[int, int]:
    """Return the numbers of alpha and beta electrons."""
    ne = sum(round(atom[0]) for atom in read_xyz(path))
    charge = 0
    spin = 0
    line = _value_line(path, "CHARGE")
    if line is not None:
        if not line:
            raise InputError("Missing charge!")
        charge = _parse(line, int, "charge")
    line = _value_line(path, "SPIN")
    if line is not None:
        if not line:
            raise InputError("Missing spin!")
        spin = _parse(line, int, "spin")
    ne -= charge
    if spin == 0:
        spin = 1 if ne % 2 == 0 else 2
    if (ne + spin) % 2 == 0:
        raise InputError("Incompatible number of electrons and spin multiplicity!")
    na = math.trunc((ne + (spin - 1)) / 2)
    nb = math.trunc((ne - (spin - 1)) / 2)
    if na < 0 or nb < 0:
        raise InputError("Negative number of electrons!")
    return na, nb


def read_wfn_type(path) -> int:
    """0 for spin-restricted, 1 for unrestricted, -1 to decide from electrons and spin."""
    wfntype = -1
    line = _value_line(path, "WFNTYPE")
    if line is not None:
        if not line:
            raise InputError("Missing WfnType!")
        wfntype = _parse(line, int, "WfnType")
    if wfntype not in (0, 1, -1):
        raise InputError("Invalid type of wavefunction!")
    return wfntype


def read_num_threads(path) -> int:
    nthreads = 1
    line = _value_line(path, "NTHREADS")
    if line is not None:
        if not line:
            raise InputError("Missing nthreads!")
        nthreads = _parse(line, int, "nthreads")
    if nthreads <= 0:
        raise InputError("Invalid number of threads!")
    return nthreads


def _read_word(path, keyword: str, default: str, what: str) -> str:
    line = _value_line(path, keyword)
    if line is None:
        return default
    line = line.upper()
    if not line:
        raise InputError(f"Missing {what}!")
    tokens = line.split()
    return tokens[0] if tokens else default


def read_job_type(path) -> str:
    jobtype = _read_word(path, "JOBTYPE", "SCF", "job type")
    if jobtype not in ("SCF", "LOCALIZATION"):
        raise InputError("Invalid job type!")
    return jobtype


def read_scf(path) -> str:
    scf = _read_word(path, "SCFTYPE", "DIIS", "SCF TYPE")
    if scf not in ("DIIS", "NEWTON", "QUASI"):
        raise InputError("Invalid SCF type!")
    return scf


def read_guess(path) -> str:
    guess = _read_word(path, "GUESS", "SAP", "guess")
    if guess not in ("SAP", "READ"):
        raise InputError("Invalid guess!")
    return guess


def read_grid(path) -> str:
    return _read_word(path, "GRID", "", "grid")


def read_method(path) -> str:
    return _read_word(path, "METHOD", "HF", "method")


def _read_number(path, keyword: str, what: str) -> float:
    line = _value_line(path, keyword)
    if line is None:
        return 0.0
    if not line:
        raise InputError(f"Missing {what}!")
    return _parse(line, float, what)


def read_derivative(path) -> int:
    order = _read_number(path, "DERIVATIVE", "derivative")
    if order < 0:
        raise InputError("Invalid order of derivative!")
    return int(order)


def read_temperature(path) -> float:
    temperature = _read_number(path, "TEMPERATURE", "temperature")
    if temperature < 0:
        raise InputError("Invalid temperature!")
    return temperature


def read_chemical_potential(path) -> float:
    return _read_number(path, "CHEMICALPOTENTIAL", "chemical potential")