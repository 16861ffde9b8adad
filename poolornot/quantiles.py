"""
Inverse-CDF (quantile) functions for the prior families.

Normal, Gamma and Beta quantiles by bisection on the corresponding CDF.
The regularized incomplete Gamma and Beta functions use the usual series
and continued-fraction expansions (Numerical Recipes style).
"""

from __future__ import annotations

import math

FPMIN = 1e-300


def normal_cdf(x: float, loc: float = 0.0, scale: float = 1.0) -> float:
    """Normal CDF; erfc keeps precision in the lower tail."""

    assert scale > 0.0
    return 0.5 * math.erfc(-(x - loc) / (scale * math.sqrt(2.0)))


def normal_ppf(q: float, loc: float = 0.0, scale: float = 1.0, tol: float = 1e-14, max_iter: int = 200) -> float:
    """Inverse CDF for Normal(loc, scale) via bisection on normal_cdf."""

    assert 0.0 <= q <= 1.0
    assert scale > 0.0
    if q <= 0.0:
        return -math.inf
    if q >= 1.0:
        return math.inf

    lo, hi = -40.0, 40.0
    for _ in range(max_iter):
        mid = 0.5 * (lo + hi)
        cdf = normal_cdf(mid)
        if abs(cdf - q) <= tol:
            return loc + scale * mid
        if cdf < q:
            lo = mid
        else:
            hi = mid
    return loc + scale * 0.5 * (lo + hi)


def gamma_ppf(q: float, shape: float, scale: float, tol: float = 1e-14, max_iter: int = 400) -> float:
    """Inverse CDF for Gamma(shape, scale) via bisection on gammainc_reg."""

    assert 0.0 <= q <= 1.0
    assert shape > 0.0 and scale > 0.0
    if q <= 0.0:
        return 0.0
    if q >= 1.0:
        return math.inf

    lo, hi = 0.0, max(shape, 1.0)
    while gammainc_reg(shape, hi) < q:
        lo = hi
        hi *= 2.0
    for _ in range(max_iter):
        mid = 0.5 * (lo + hi)
        cdf = gammainc_reg(shape, mid)
        if abs(cdf - q) <= tol:
            return mid * scale
        if cdf < q:
            lo = mid
        else:
            hi = mid
    return 0.5 * (lo + hi) * scale


def gammainc_reg(a: float, x: float) -> float:
    """Regularized lower incomplete gamma P(a, x)."""

    assert a > 0.0
    if x <= 0.0:
        return 0.0
    if math.isinf(x):
        return 1.0
    if x < a + 1.0:
        return gamma_series(a, x)
    return 1.0 - gamma_cf(a, x)


def gamma_series(a: float, x: float, max_iter: int = 500, eps: float = 3e-16) -> float:
    """Series representation of P(a, x), valid for x < a + 1."""

    ap = a
    term = 1.0 / a
    total = term
    for _ in range(max_iter):
        ap += 1.0
        term *= x / ap
        total += term
        if abs(term) < abs(total) * eps:
            break
    return total * math.exp(-x + a * math.log(x) - math.lgamma(a))


def gamma_cf(a: float, x: float, max_iter: int = 500, eps: float = 3e-16) -> float:
    """Continued fraction for Q(a, x) = 1 - P(a, x), valid for x >= a + 1 (modified Lentz)."""

    b = x + 1.0 - a
    c = 1.0 / FPMIN
    d = 1.0 / b
    h = d
    for i in range(1, max_iter + 1):
        an = -i * (i - a)
        b += 2.0
        d = an * d + b
        if abs(d) < FPMIN:
            d = FPMIN
        c = b + an / c
        if abs(c) < FPMIN:
            c = FPMIN
        d = 1.0 / d
        delta = d * c
        h *= delta
        if abs(delta - 1.0) < eps:
            break
    return math.exp(-x + a * math.log(x) - math.lgamma(a)) * h


def beta_ppf(q: float, a: float, b: float, tol: float = 1e-14, max_iter: int = 200) -> float:
    """Inverse CDF for Beta(a,b) via bisection on the regularized incomplete beta."""

    assert 0.0 <= q <= 1.0
    assert a > 0.0 and b > 0.0
    if q <= 0.0:
        return 0.0
    if q >= 1.0:
        return 1.0

    lo, hi = 0.0, 1.0
    for _ in range(max_iter):
        mid = 0.5 * (lo + hi)
        cdf = betainc_reg(mid, a, b)
        if abs(cdf - q) <= tol:
            return mid
        if cdf < q:
            lo = mid
        else:
            hi = mid
    return 0.5 * (lo + hi)


def betainc_reg(x: float, a: float, b: float) -> float:
    """Regularized incomplete beta I_x(a,b) using a continued fraction."""

    assert 0.0 <= x <= 1.0
    if x == 0.0:
        return 0.0
    if x == 1.0:
        return 1.0

    ln_beta = math.lgamma(a) + math.lgamma(b) - math.lgamma(a + b)
    front = math.exp((a * math.log(x)) + (b * math.log(1.0 - x)) - ln_beta)

    if x < (a + 1.0) / (a + b + 2.0):
        return front * betacf(x, a, b) / a
    return 1.0 - front * betacf(1.0 - x, b, a) / b


def betacf(x: float, a: float, b: float, max_iter: int = 200, eps: float = 3e-16) -> float:
    """Continued fraction for incomplete beta (modified Lentz)."""

    qab = a + b
    qap = a + 1.0
    qam = a - 1.0
    c = 1.0
    d = 1.0 - qab * x / qap
    if abs(d) < FPMIN:
        d = FPMIN
    d = 1.0 / d
    h = d
    for m in range(1, max_iter + 1):
        m2 = 2 * m
        aa = m * (b - m) * x / ((qam + m2) * (a + m2))
        d = 1.0 + aa * d
        if abs(d) < FPMIN:
            d = FPMIN
        c = 1.0 + aa / c
        if abs(c) < FPMIN:
            c = FPMIN
        d = 1.0 / d
        h *= d * c
        aa = -(a + m) * (qab + m) * x / ((a + m2) * (qap + m2))
        d = 1.0 + aa * d
        if abs(d) < FPMIN:
            d = FPMIN
        c = 1.0 + aa / c
        if abs(c) < FPMIN:
            c = FPMIN
        d = 1.0 / d
        delta = d * c
        h *= delta
        if abs(delta - 1.0) < eps:
            break
    return h
