# chemscf

`chemscf` collects numerical pieces that sit around a self-consistent-field
calculation, written with NumPy and SciPy:

- **Input parsing** (`chemscf.gateway`): reads keyword blocks such as `XYZ`,
  `BASIS`, `CHARGE`, `SPIN`, `WFNTYPE`, `NTHREADS`, `JOBTYPE`, `SCFTYPE`,
  `GUESS`, `GRID`, `METHOD`, `DERIVATIVE`, `TEMPERATURE` and
  `CHEMICALPOTENTIAL` from a plain-text input file. Missing or invalid values
  raise `InputError`.
- **Nuclear repulsion** (`chemscf.nuclear`): `nuclear_repulsion`,
  `nuclear_repulsion_gradient` and `nuclear_repulsion_hessian` for atoms given
  as `(Z, x, y, z)` rows in bohr.
- **Multiwfn files** (`chemscf.mwfn`): `read_mwfn` and `Mwfn.export` read and
  write `.mwfn` wavefunction files, reordering spherical-harmonic basis
  functions between the file's order and the internal `m = -l, ..., +l` order
  (`mwfn_matrix_transform`).
- **Convergence accelerators** (`chemscf.optimization`): `diis`, `cdiis`,
  `aediis` (EDIIS and ADIIS), `quadratic_programming`, `dense_to_csc`,
  `conjugate_gradient`, `lbfgs`, `fabfgs` and `adagrad`.
- **Symmetry elements** (`chemscf.symmetry`): the `Atom` record and tests for
  an inversion centre, mirror planes, proper and improper rotation axes, and
  searches for a horizontal C2 axis or a mirror containing the z axis.

## Installation

```
pip install .
```

For running the test suite:

```
pip install ".[test]"
pytest
```

## Reading an input file

An input file is a sequence of keyword lines, each followed by its value:

```
XYZ
3
O   0.000000   0.000000   0.117300
H   0.000000   0.757200  -0.469200
H   0.000000  -0.757200  -0.469200
BASIS
def2-svp
CHARGE
0
SPIN
1
METHOD
HF
```

```python
from chemscf.gateway import read_xyz, read_basis_set, read_num_electrons, read_method
from chemscf.nuclear import nuclear_repulsion

atoms = read_xyz("water.inp")          # rows [Z, Z, x, y, z], coordinates in bohr
print(read_basis_set("water.inp"))      # "def2-svp"
print(read_num_electrons("water.inp"))  # (5, 5): alpha and beta electrons
print(read_method("water.inp"))         # "HF"
print(nuclear_repulsion([[a[0], *a[2:]] for a in atoms]))  # hartree
```

## Multiwfn files

```python
from chemscf.mwfn import read_mwfn

wavefunction = read_mwfn("water.mwfn")  # a missing file gives an empty Mwfn
wavefunction.export("copy.mwfn")
```

## DIIS extrapolation

```python
from chemscf.optimization import diis, cdiis

fock, error2norm = diis(fock_history, error_history)
fock = cdiis(commutator_history, fock_history)
```

## Symmetry tests

```python
import numpy as np
from chemscf.symmetry import Atom, has_inversion_centre, is_proper_axis

h2 = [Atom(1, 0.0, 0.0, -0.7), Atom(1, 0.0, 0.0, 0.7)]
print(has_inversion_centre(h2, 0.01))                      # True
print(is_proper_axis(h2, np.array([1.0, 0.0, 0.0]), 2, 0.01))  # True
```

## What the package does not do

`chemscf` has no command-line program and does not run a complete SCF
calculation: it computes no one- or two-electron integrals and has no
exchange-correlation functionals. It also does not classify molecules into
point groups or reorient them to a standard frame; `chemscf.symmetry` only
tests individual symmetry elements.