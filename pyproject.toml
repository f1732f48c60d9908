[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "chemscf"
version = "0.1.0"
description = "Building blocks for self-consistent-field quantum chemistry: input parsing, nuclear repulsion, Multiwfn files, SCF convergence accelerators and molecular symmetry tests."
requires-python = ">=3.10"
keywords = [
    "quantum chemistry",
    "hartree-fock",
    "scf",
    "diis",
    "multiwfn",
    "symmetry",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Chemistry",
    "Topic :: Scientific/Engineering :: Physics",
]
dependencies = [
    "numpy",
    "scipy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["chemscf"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
