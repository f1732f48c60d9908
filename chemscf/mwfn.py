"""Reading and writing wavefunction information in the .mwfn text format.

Internally, basis functions of each shell are ordered as m = -l, ..., +l
(for P shells: P-1, P0, P+1).  The .mwfn format orders them as
Px, Py, Pz and D0, D+1, D-1, D+2, D-2, and so on.  Matrices and orbital
coefficients are converted between the two orderings on reading and
writing.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from itertools import islice
from pathlib import Path

import numpy as np

from chemscf.gateway import ANGSTROM_TO_BOHR, element_symbol

MAX_ANGULAR_MOMENTUM = 6

_FLT_MAX = float(np.finfo(np.float32).max)
_FLT_MIN = float(np.finfo(np.float32).tiny)


def safe_float(word: str) -> float:
    """Parse a number with single precision, mapping out-of-range values to zero.

    Occupation numbers at finite temperature can be far smaller than single
    precision can hold; such values are read as 0.
    """
    value = float(word)
    if math.isfinite(value) and (abs(value) > _FLT_MAX or 0.0 < abs(value) < _FLT_MIN):
        return 0.0
    return float(np.float32(value))


def _mwfn_order(l: int) -> list[int]:
    """Column of the internal ordering that each .mwfn function of a shell maps to."""
    if l == 1:
        return [2, 0, 1]
    order = [l]
    for k in range(1, l + 1):
        order += [l + k, l - k]
    return order


def mwfn_matrix_transform(shell_types) -> np.ndarray:
    """Block-diagonal permutation matrix from internal to .mwfn basis ordering.

    Row ``i`` of a shell block has its single 1 in the column of the internal
    function that is the ``i``-th function in .mwfn order.
    """
    ls = [abs(int(t)) for t in shell_types]
    for l in ls:
        if l > MAX_ANGULAR_MOMENTUM:
            raise ValueError(f"Angular momentum {l} is not supported")
    nbasis = sum(2 * l + 1 for l in ls)
    transform = np.zeros((nbasis, nbasis))
    offset = 0
    for l in ls:
        for row, col in enumerate(_mwfn_order(l)):
            transform[offset + row, offset + col] = 1.0
        offset += 2 * l + 1
    return transform


def format_matrix(matrix, lower: bool) -> str:
    """Format a matrix row by row; only the lower triangle when ``lower``."""
    matrix = np.asarray(matrix, dtype=float)
    lines = []
    for i, row in enumerate(matrix):
        values = row[: i + 1] if lower else row
        lines.append("".join(f" {value:E}" for value in values) + "\n")
    return "".join(lines)


@dataclass
class Mwfn:
    """Wavefunction information as held in a .mwfn file.

    Unset scalar fields are None.  ``centers`` holds ``(Z, x, y, z)`` rows with
    coordinates in bohr, ``shell_centers`` holds 0-based atom indices and
    matrices use the internal basis ordering.
    """

    # Overview
    wfntype: int | None = None
    charge: int | None = None
    naelec: int | None = None
    nbelec: int | None = None
    e_tot: float | None = None
    vt_ratio: float | None = None

    # Atoms
    ncenter: int | None = None
    centers: list = field(default_factory=list)

    # Basis set
    nbasis: int | None = None
    nindbasis: int | None = None
    nprims: int | None = None
    nshell: int | None = None
    nprimshell: int | None = None
    shell_types: list = field(default_factory=list)
    shell_centers: list = field(default_factory=list)
    shell_contraction_degrees: list = field(default_factory=list)
    primitive_exponents: list = field(default_factory=list)
    contraction_coefficients: list = field(default_factory=list)

    # Orbitals
    orbital_types: list = field(default_factory=list)
    energy: np.ndarray = field(default_factory=lambda: np.zeros(0))
    occ: np.ndarray = field(default_factory=lambda: np.zeros(0))
    sym: list = field(default_factory=list)
    coeff: np.ndarray = field(default_factory=lambda: np.zeros((0, 0)))

    # Matrices
    total_density_matrix: np.ndarray | None = None
    hamiltonian_matrix: np.ndarray | None = None
    overlap_matrix: np.ndarray | None = None
    kinetic_energy_matrix: np.ndarray | None = None
    potential_energy_matrix: np.ndarray | None = None

    def _num_centers(self) -> int:
        if self.ncenter is not None:
            return self.ncenter
        if self.shell_centers:
            return max(self.shell_centers) + 1
        return len(self.centers)

    def _overview(self) -> list[str]:
        parts = ["\n\n# Overview\n", "Wfntype= 0\n"]
        for label, value in (("Charge", self.charge), ("Naelec", self.naelec),
                             ("Nbelec", self.nbelec)):
            if value is not None:
                parts.append(f"{label}= {value:d}\n")
        for label, value in (("E_tot", self.e_tot), ("VT_ratio", self.vt_ratio)):
            if value is not None:
                parts.append(f"{label}= {value:f}\n")
        return parts

    def _atoms(self) -> list[str]:
        parts = ["\n\n# Atoms\n"]
        if self.ncenter is not None:
            parts.append(f"Ncenter= {self.ncenter:d}\n")
        if self.centers:
            parts.append("$Centers\n")
            for index, (z, x, y, w) in enumerate(self.centers, start=1):
                parts.append(
                    f"{index} {element_symbol(int(z))} {int(z)} {z:f} "
                    f"{x / ANGSTROM_TO_BOHR:f} {y / ANGSTROM_TO_BOHR:f} "
                    f"{w / ANGSTROM_TO_BOHR:f}\n"
                )
        return parts

    def _basis(self) -> list[str]:
        parts = ["\n\n# Basis set\n"]
        for label, value in (("Nbasis", self.nbasis), ("Nindbasis", self.nindbasis),
                             ("Nprims", self.nprims), ("Nshell", self.nshell),
                             ("Nprimshell", self.nprimshell)):
            if value is not None:
                parts.append(f"{label}= {value:d}\n")
        if not self.shell_centers:
            return parts
        counts = [0] * self._num_centers()
        for centre in self.shell_centers:
            counts[centre] += 1

        parts.append("$Shell types\n")
        types = iter(self.shell_types)
        for count in counts:
            # Only pure spherical harmonics are used.
            parts.append("".join(f" {t if t < 2 else -t:d}" for t in islice(types, count)) + "\n")
        parts.append("$Shell centers\n")
        for centre, count in enumerate(counts, start=1):
            parts.append(f" {centre:d}" * count + "\n")
        parts.append("$Shell contraction degrees\n")
        degrees = iter(self.shell_contraction_degrees)
        for count in counts:
            parts.append("".join(f" {d:d}" for d in islice(degrees, count)) + "\n")

        for title, values in (("$Primitive exponents\n", self.primitive_exponents),
                              ("$Contraction coefficients\n", self.contraction_coefficients)):
            parts.append(title)
            primitives = iter(values)
            for degree in self.shell_contraction_degrees:
                parts.append("".join(f" {v:f}" for v in islice(primitives, degree)) + "\n")
        return parts

    def _orbitals(self, transform: np.ndarray) -> list[str]:
        parts = ["\n\n# Orbitals\n"]
        if len(self.energy) == 0:
            return parts
        coefficients = transform @ np.asarray(self.coeff, dtype=float)
        for i in range(len(self.energy)):
            parts.append(f"Index= {i + 1:9d}\n")
            parts.append(f"Type= {self.orbital_types[i]:d}\n")
            parts.append(f"Energy= {self.energy[i]:E}\n")
            parts.append(f"Occ= {self.occ[i]:E}\n")
            parts.append(f"Sym= {self.sym[i]}\n")
            parts.append("$Coeff\n")
            parts.append("".join(f" {c:E}" for c in coefficients[:, i]) + "\n\n")
        return parts

    def _matrices(self, transform: np.ndarray) -> list[str]:
        parts = ["\n\n# Matrices\n"]
        for title, matrix in (("$Total density matrix", self.total_density_matrix),
                              ("$1-e Hamiltonian matrix", self.hamiltonian_matrix),
                              ("$Overlap matrix", self.overlap_matrix),
                              ("$Kinetic energy matrix", self.kinetic_energy_matrix),
                              ("$Potential energy matrix", self.potential_energy_matrix)):
            if matrix is None or np.asarray(matrix).size == 0:
                continue
            n = self.nbasis if self.nbasis is not None else np.asarray(matrix).shape[0]
            parts.append(f"{title}, dim= {n:d} {n:d} lower= 1\n")
            parts.append(format_matrix(transform @ np.asarray(matrix, dtype=float) @ transform.T, True))
        return parts

    def export(self, filename) -> None:
        """Write the wavefunction information to ``filename`` in .mwfn format."""
        transform = mwfn_matrix_transform(self.shell_types)
        parts = ["# Generated by chemscf\n"]
        parts += self._overview()
        parts += self._atoms()
        parts += self._basis()
        parts += self._orbitals(transform)
        parts += self._matrices(transform)
        Path(filename).write_text("".join(parts))


def _take_values(lines: list[str], start: int, total: int) -> tuple[list[str], int]:
    """Collect ``total`` whitespace-separated words from consecutive non-blank lines."""
    values: list[str] = []
    index = start
    while len(values) < total and index < len(lines) and lines[index].strip():
        values.extend(lines[index].split()[: total - len(values)])
        index += 1
    if len(values) < total:
        raise ValueError(f"Expected {total} values at line {start + 1}, found {len(values)}")
    return values, index


def _require(value, what: str):
    if value is None:
        raise ValueError(f"{what} must be given before it is used")
    return value


def _read_matrix(tokens: list[str], lines: list[str], start: int,
                 transform: np.ndarray | None) -> tuple[np.ndarray, int]:
    try:
        dim = tokens.index("dim=")
        nrows, ncols = int(tokens[dim + 1]), int(tokens[dim + 2])
        lower = int(tokens[tokens.index("lower=") + 1])
    except (ValueError, IndexError):
        raise ValueError(f"Malformed matrix header: {' '.join(tokens)!r}") from None
    total = (1 + ncols) * ncols // 2 if lower else nrows * ncols
    words, index = _take_values(lines, start, total)
    values = [safe_float(word) for word in words]
    matrix = np.zeros((nrows, ncols))
    if lower:
        rows, cols = np.tril_indices(ncols)
        matrix[rows, cols] = values
        matrix[cols, rows] = values
    else:
        matrix[:, :] = np.reshape(values, (nrows, ncols))
    transform = _require(transform, "Shell types")
    return transform.T @ matrix @ transform, index


def read_mwfn(filename) -> Mwfn:
    """Read basis, orbital, density and overlap information from a .mwfn file.

    A missing file yields an empty :class:`Mwfn`.
    """
    mwfn = Mwfn()
    path = Path(filename)
    if not path.is_file():
        return mwfn
    lines = path.read_text().splitlines()
    transform: np.ndarray | None = None
    orbital: int | None = None
    index = 0
    while index < len(lines):
        tokens = lines[index].split()
        index += 1
        if not tokens:
            continue
        key, rest = tokens[0], tokens[1:]

        if key == "Nbasis=":
            n = int(rest[0])
            mwfn.nbasis = n
            mwfn.orbital_types = [0] * n
            mwfn.energy = np.zeros(n)
            mwfn.occ = np.zeros(n)
            mwfn.sym = [""] * n
            mwfn.coeff = np.zeros((n, n))
        elif key == "Nindbasis=":
            mwfn.nindbasis = int(rest[0])
        elif key == "Nprims=":
            mwfn.nprims = int(rest[0])
        elif key == "Nshell=":
            mwfn.nshell = int(rest[0])
        elif key == "Nprimshell=":
            mwfn.nprimshell = int(rest[0])
        elif key == "$Shell" and rest and rest[0] in ("types", "centers", "contraction"):
            total = _require(mwfn.nshell, "Nshell")
            words, index = _take_values(lines, index, total)
            numbers = [int(word) for word in words]
            if rest[0] == "types":
                mwfn.shell_types = numbers
                transform = mwfn_matrix_transform(numbers)
            elif rest[0] == "centers":
                mwfn.shell_centers = [number - 1 for number in numbers]
            else:
                mwfn.shell_contraction_degrees = numbers
        elif key == "Index=":
            orbital = int(rest[0]) - 1
        elif key == "Type=":
            mwfn.orbital_types[_require(orbital, "Index")] = int(rest[0])
        elif key == "Energy=":
            mwfn.energy[_require(orbital, "Index")] = safe_float(rest[0])
        elif key == "Occ=":
            mwfn.occ[_require(orbital, "Index")] = safe_float(rest[0])
        elif key == "Sym=":
            mwfn.sym[_require(orbital, "Index")] = rest[0] if rest else ""
        elif key == "$Coeff":
            column_index = _require(orbital, "Index")
            words, index = _take_values(lines, index, _require(mwfn.nbasis, "Nbasis"))
            column = np.array([safe_float(word) for word in words])
            mwfn.coeff[:, column_index] = _require(transform, "Shell types").T @ column
        elif key == "$Total":
            mwfn.total_density_matrix, index = _read_matrix(tokens, lines, index, transform)
        elif key == "$Overlap":
            mwfn.overlap_matrix, index = _read_matrix(tokens, lines, index, transform)
    return mwfn