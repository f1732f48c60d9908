"""Extrapolation and quasi-Newton helpers used to accelerate SCF iterations.

Matrices are numpy arrays.  Histories are sequences ordered newest first
unless stated otherwise.  Inner products of matrices are Frobenius
products, ``trace(A.T @ B)``.
"""

from __future__ import annotations

from typing import Callable, Sequence

import numpy as np
from scipy.optimize import minimize

_SMALL_CONSTANT = 1.0e-7


def _dot(a: np.ndarray, b: np.ndarray) -> float:
    return float(np.sum(np.asarray(a, dtype=float) * np.asarray(b, dtype=float)))


def _diis_weights(residuals: Sequence[np.ndarray]) -> tuple[np.ndarray, np.ndarray]:
    """Solve the Pulay equations; return the weights and the residual Gram matrix."""
    size = len(residuals)
    if size == 0:
        raise ValueError("DIIS needs at least one residual")
    gram = np.array([[_dot(ei, ej) for ej in residuals] for ei in residuals])
    lhs = np.zeros((size + 1, size + 1))
    lhs[:size, :size] = gram
    lhs[:size, size] = -1.0
    lhs[size, :size] = -1.0
    rhs = np.zeros(size + 1)
    rhs[size] = -1.0
    solution = np.linalg.lstsq(lhs, rhs, rcond=None)[0]
    return solution[:size], gram


def diis(ds: Sequence[np.ndarray], es: Sequence[np.ndarray]) -> tuple[np.ndarray, float]:
    """Pulay extrapolation of ``ds`` from their error matrices ``es``.

    Returns the extrapolated matrix and the squared norm of the
    extrapolated error, ``x.T @ B @ x``.
    """
    if len(ds) < len(es):
        raise ValueError("Fewer matrices than error matrices")
    weights, gram = _diis_weights(es)
    result = sum((w * np.asarray(d, dtype=float) for w, d in zip(weights, ds)),
                 np.zeros_like(np.asarray(ds[0], dtype=float)))
    error2norm = float(weights @ gram @ weights)
    return result, error2norm


def cdiis(gs: Sequence[np.ndarray], fs: Sequence[np.ndarray]) -> np.ndarray:
    """Commutator DIIS: combine ``fs`` with weights minimising the combined ``gs``."""
    if len(fs) != len(gs):
        raise ValueError("Numbers of matrices and residuals differ")
    weights, _ = _diis_weights(gs)
    return sum((w * np.asarray(f, dtype=float) for w, f in zip(weights, fs)),
               np.zeros_like(np.asarray(fs[0], dtype=float)))


def dense_to_csc(dense, sym: bool) -> tuple[list[float], list[int], list[int]]:
    """Compressed-sparse-column arrays of a dense matrix, keeping every entry.

    With ``sym`` only the upper triangle (row <= column) is stored.
    Returns ``(elements, row_indices, column_pointers)``.
    """
    matrix = np.asarray(dense, dtype=float)
    nrows, ncols = matrix.shape
    elements: list[float] = []
    rows: list[int] = []
    pointers: list[int] = []
    for j in range(ncols):
        pointers.append(len(elements))
        stop = j + 1 if sym else nrows
        for i in range(stop):
            elements.append(float(matrix[i, j]))
            rows.append(i)
    pointers.append(len(elements))
    return elements, rows, pointers


def quadratic_programming(h, g, a, lower, upper) -> np.ndarray:
    """Minimise ``0.5 x.T h x + g.T x`` subject to ``lower <= a x <= upper``."""
    h = np.asarray(h, dtype=float)
    g = np.asarray(g, dtype=float).ravel()
    a = np.atleast_2d(np.asarray(a, dtype=float))
    lower = np.asarray(lower, dtype=float).ravel()
    upper = np.asarray(upper, dtype=float).ravel()
    n = g.size
    if h.shape != (n, n) or a.shape[1] != n:
        raise ValueError("Inconsistent problem dimensions")
    if lower.size != a.shape[0] or upper.size != a.shape[0]:
        raise ValueError("Bounds must match the number of constraints")
    if np.any(lower > upper):
        raise ValueError("Lower bounds exceed upper bounds")

    equal = np.isclose(lower, upper)
    eq_rows, eq_vals = a[equal], lower[equal]
    has_lower = ~equal & np.isfinite(lower)
    has_upper = ~equal & np.isfinite(upper)
    ineq_a = np.vstack([a[has_lower], -a[has_upper]])
    ineq_b = np.concatenate([lower[has_lower], -upper[has_upper]])

    constraints = []
    if eq_rows.size:
        constraints.append({"type": "eq", "fun": lambda x: eq_rows @ x - eq_vals,
                            "jac": lambda x: eq_rows})
    if ineq_a.size:
        constraints.append({"type": "ineq", "fun": lambda x: ineq_a @ x - ineq_b,
                            "jac": lambda x: ineq_a})

    result = minimize(
        lambda x: 0.5 * x @ h @ x + g @ x,
        np.zeros(n),
        jac=lambda x: h @ x + g,
        method="SLSQP",
        constraints=constraints,
        options={"ftol": 1e-12, "maxiter": 1000},
    )
    return np.asarray(result.x, dtype=float)


def aediis(diistype: str, energies, ds: Sequence[np.ndarray], fs: Sequence[np.ndarray]) -> np.ndarray:
    """EDIIS (``'e'``) or ADIIS (``'a'``) combination of Fock matrices ``fs``.

    Weights lie on the simplex and minimise the interpolated energy model.
    """
    if diistype not in ("e", "a"):
        raise ValueError(f"Unknown DIIS type: {diistype!r}")
    ds = [np.asarray(d, dtype=float) for d in ds]
    fs = [np.asarray(f, dtype=float) for f in fs]
    size = len(fs)
    if size == 0 or len(ds) != size:
        raise ValueError("Need equally many density and Fock matrices")

    h = np.zeros((size, size))
    for i in range(size):
        for j in range(i + 1):
            if diistype == "e":
                hij = -2.0 * _dot(ds[i] - ds[j], fs[i] - fs[j])
            else:
                hij = 2.0 * _dot(ds[i] - ds[0], fs[j] - fs[0])
            h[i, j] = h[j, i] = hij

    # The quadratic program needs a positive semi-definite matrix.
    eigenvalues, eigenvectors = np.linalg.eigh(h)
    h = eigenvectors @ np.diag(np.clip(eigenvalues, 0.0, None)) @ eigenvectors.T

    constraint = np.vstack([np.ones((1, size)), np.eye(size)])
    lower = np.zeros(size + 1)
    upper = np.ones(size + 1)
    lower[0] = 1.0

    if diistype == "e":
        g = np.asarray(energies, dtype=float).ravel()
        if g.size != size:
            raise ValueError("Need one energy per matrix")
    else:
        g = np.array([2.0 * _dot(d - ds[0], fs[0]) for d in ds])

    weights = quadratic_programming(h, g, constraint, lower, upper)
    return sum((w * f for w, f in zip(weights, fs)), np.zeros_like(fs[0]))


def conjugate_gradient(
    func: Callable[[np.ndarray], np.ndarray], guess, b, maxiter: int, threshold: float
) -> np.ndarray:
    """Solve ``func(x) = b`` for a symmetric positive-definite linear ``func``."""
    x = np.array(guess, dtype=float)
    b = np.asarray(b, dtype=float)
    r = b - func(x)
    p = r.copy()
    for _ in range(maxiter):
        if np.linalg.norm(r) < threshold:
            break
        rdot = _dot(r, r)
        ap = func(p)
        alpha = rdot / _dot(p, ap)
        x = x + alpha * p
        r = r - alpha * ap
        beta = _dot(r, r) / rdot
        p = r + beta * p
    return x


def _differences(values: Sequence[np.ndarray]) -> list[np.ndarray]:
    arrays = [np.asarray(v, dtype=float) for v in values]
    return [newer - older for newer, older in zip(arrays, arrays[1:])]


def lbfgs(gradients: Sequence[np.ndarray], positions: Sequence[np.ndarray], hessian_diag) -> np.ndarray:
    """Limited-memory BFGS step from histories of gradients and positions.

    A diagonal Hessian guess whose first element is zero selects the
    usual scaled-identity initial inverse Hessian.
    """
    if len(gradients) < 2 or len(gradients) != len(positions):
        raise ValueError("Need at least two equally long histories")
    ys = _differences(gradients)
    ss = _differences(positions)
    q = np.array(gradients[0], dtype=float)
    rhos = []
    alphas = []
    for s, y in zip(ss, ys):
        rho = 1.0 / (y @ s)
        alpha = rho * (s @ q)
        q = q - alpha * y
        rhos.append(rho)
        alphas.append(alpha)
    hessian_diag = np.asarray(hessian_diag, dtype=float)
    if hessian_diag[0] == 0:
        z = -(ss[0] @ ys[0]) / (ys[0] @ ys[0]) * q
    else:
        z = -q / hessian_diag
    for s, y, rho, alpha in reversed(list(zip(ss, ys, rhos, alphas))):
        z = z - s * (alpha + rho * (y @ z))
    return z


def fabfgs(gradients: Sequence[np.ndarray], positions: Sequence[np.ndarray], hessian_diag) -> np.ndarray:
    """BFGS variant with a diagonal initial Hessian, applied through update vectors."""
    if len(gradients) < 2 or len(gradients) != len(positions):
        raise ValueError("Need at least two equally long histories")
    inverse_diag = 1.0 / np.asarray(hessian_diag, dtype=float)
    g0 = np.asarray(gradients[0], dtype=float)
    w = g0 * inverse_diag
    size = len(gradients) - 1
    if size == 1:
        return -w
    big_deltas = _differences(gradients)
    deltas = _differences(positions)
    ys = [d * inverse_diag for d in big_deltas]
    for i in range(size - 1, 0, -1):
        s1 = 1.0 / (deltas[i] @ big_deltas[i])
        s2 = 1.0 / (big_deltas[i] @ ys[i])
        s3 = deltas[i] @ g0
        s4 = ys[i] @ g0
        s5 = deltas[i] @ big_deltas[0]
        s6 = ys[i] @ big_deltas[0]
        t1 = (1 + s1 / s2) * s1 * s3 - s1 * s4
        t2 = s1 * s3
        t3 = (1 + s1 / s2) * s1 * s5 - s1 * s6
        t4 = s1 * s5
        w = w + t1 * deltas[i] - t2 * ys[i]
        ys[0] = ys[0] + t3 * deltas[i] - t4 * ys[i]
    s1 = 1.0 / (deltas[0] @ big_deltas[0])
    s2 = 1.0 / (big_deltas[0] @ ys[0])
    s3 = deltas[0] @ g0
    s4 = ys[0] @ g0
    t1 = (1 + s1 / s2) * s1 * s3 - s1 * s4
    t2 = s1 * s3
    w = w + t1 * deltas[0] - t2 * ys[0]
    return -w


def adagrad(gradients: Sequence[np.ndarray]) -> np.ndarray:
    """AdaGrad step: the newest gradient scaled by the accumulated gradient norm."""
    if not gradients:
        raise ValueError("Need at least one gradient")
    arrays = [np.asarray(g, dtype=float) for g in gradients]
    accumulated = sum((g * g for g in arrays), np.zeros_like(arrays[0]))
    scale = 1.0 / (_SMALL_CONSTANT + np.sqrt(accumulated))
    return -scale * arrays[0]