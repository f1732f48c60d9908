"""Input parsing, nuclear repulsion, Multiwfn files, SCF accelerators and symmetry tests."""

__version__ = "0.1.0"

__all__ = [
    "gateway",
    "mwfn",
    "nuclear",
    "optimization",
    "symmetry",
]