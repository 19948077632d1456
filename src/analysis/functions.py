"""
Numerical functions for physics analysis expressions.

Small, stateless helpers (NaN cleaning, clamping, sign, pair masses,
delta-phi / delta-R and the exponential-times-erf "CMS shape") that are
applied column by column to event data.

Every function accepts plain scalars, NumPy arrays or (jagged) Awkward
Arrays. Scalar input gives a scalar back, array input keeps its structure.
Degenerate input never raises: NaN and infinities propagate, and callers
use `clean` where they want a sentinel instead.
"""

import numpy as np
import awkward as ak
import vector
from scipy import special


PI = np.pi

_POLAR = ("pt", "eta", "phi", "mass")


def _is_awkward(*values):
    return any(isinstance(v, ak.Array) for v in values)


def _where(condition, x, y):
    if _is_awkward(condition, x, y):
        return ak.where(condition, x, y)
    result = np.where(condition, x, y)
    # 0-d result for scalar input
    return result[()] if result.ndim == 0 else result


def _single(x):
    """Round to single precision, keeping the container type."""
    if isinstance(x, ak.Array):
        return ak.values_astype(x, np.float32)
    if np.ndim(x) == 0:
        return np.float32(x)
    return np.asarray(x, dtype=np.float32)


def _double(x):
    if isinstance(x, ak.Array):
        return ak.values_astype(x, np.float64)
    if np.ndim(x) == 0:
        return float(x)
    return np.asarray(x, dtype=np.float64)


def _polar_vectors(*particles):
    """
    Build momentum four-vectors from (pt, eta, phi, mass) tuples.

    All particles share one backend so they can be added together:
    ``vector.zip`` if any component is an Awkward Array, ``vector.obj``
    if every component is a scalar, ``vector.array`` otherwise.

    Parameters
    ----------
    *particles : tuple of (pt, eta, phi, mass)
        Components may be scalars, NumPy arrays or Awkward Arrays and
        are broadcast against each other.

    Returns
    -------
    list
        One four-vector (or array of four-vectors) per input tuple.
    """
    # pt is taken as |pt|, so a negative pt does not flip the direction
    particles = [(np.abs(pt), eta, phi, mass) for pt, eta, phi, mass in particles]
    values = [v for particle in particles for v in particle]

    if _is_awkward(*values):
        template = next(v for v in values if isinstance(v, ak.Array))
        zeros = ak.zeros_like(template, dtype=np.float64)
        return [
            vector.zip({name: v + zeros for name, v in zip(_POLAR, particle)})
            for particle in particles
        ]

    if all(np.ndim(v) == 0 for v in values):
        return [
            vector.obj(**{name: float(v) for name, v in zip(_POLAR, particle)})
            for particle in particles
        ]

    arrays = np.broadcast_arrays(*[np.asarray(v, dtype=np.float64) for v in values])
    return [
        vector.array(dict(zip(_POLAR, arrays[i:i + 4])))
        for i in range(0, len(arrays), 4)
    ]


def clean(x, default=-1):
    """
    Replace a non-finite value (NaN, +inf, -inf) by `default`.

    Finite values are returned unchanged.
    """
    if _is_awkward(x):
        return ak.where(np.isfinite(x), x, default)
    if np.ndim(x) == 0:
        return x if np.isfinite(x) else default
    return np.where(np.isfinite(x), x, default)


def bound(val, low, high):
    """
    Clamp `val` into [low, high] as max(low, min(high, val)).

    The range is not validated: with low > high the result is `low`.
    Both steps keep `val` unless the comparison holds, so a NaN `val`
    propagates while a NaN `low` or `high` is ignored.
    """
    clamped = _where(high <= val, high, val)
    return _where(low >= clamped, low, clamped)


def sign(x):
    """Two-valued sign: -1 for x < 0, +1 otherwise (including 0)."""
    return _where(x < 0, -1, 1)


def dsign(x):
    """`sign` for real numbers; input is cast to float first."""
    if _is_awkward(x):
        return sign(ak.values_astype(x, np.float64))
    return sign(np.asarray(x, dtype=np.float64))


def Mxx(pt1, eta1, phi1, m1, pt2, eta2, phi2, m2):
    """
    Invariant mass of a pair of particles.

    Parameters
    ----------
    pt1, eta1, phi1, m1 : scalar or array-like
        Transverse momentum, pseudorapidity, azimuthal angle and mass
        of the first particle.
    pt2, eta2, phi2, m2 : scalar or array-like
        Same for the second particle.

    Returns
    -------
    float or array-like
        Mass of the summed four-vector, in the units of the inputs.
    """
    v1, v2 = _polar_vectors((pt1, eta1, phi1, m1), (pt2, eta2, phi2, m2))
    return (v1 + v2).mass


def MT(pt1, phi1, pt2, phi2):
    """
    Mass of two massless objects in the transverse plane.

    Same as `Mxx` with eta = 0 and m = 0 for both objects. This is not
    the MET-based transverse mass.
    """
    return Mxx(pt1, 0.0, phi1, 0.0, pt2, 0.0, phi2, 0.0)


def SignedDeltaPhi(phi1, phi2):
    """
    phi1 - phi2 wrapped into (-pi, pi].

    Only one period is added or subtracted, so inputs are expected to be
    within one period of each other.
    """
    dphi = phi1 - phi2
    return _where(
        dphi < -PI,
        dphi + 2 * PI,
        _where(dphi > PI, dphi - 2 * PI, dphi),
    )


def DeltaR2(eta1, phi1, eta2, phi2):
    """
    Squared delta-R, dEta^2 + dPhi^2.

    The differences and their squares are evaluated in single precision
    to reproduce existing reference outputs; the result is float64.
    """
    deta = _single(eta1 - eta2)
    dphi = _single(SignedDeltaPhi(phi1, phi2))
    return _double(deta * deta + dphi * dphi)


def ExpErf(x, a, b, c):
    """
    Exponential times erf, aka CMS shape:

        exp(c*x) * (1 + erf((x - a) / b)) / 2

    b = 0 gives +-inf (or NaN at x = a) inside the erf rather than an
    exception.
    """
    with np.errstate(divide="ignore", over="ignore", invalid="ignore"):
        exp_ = np.exp(np.multiply(c, x))
        erf_ = special.erf(np.true_divide(np.subtract(x, a), b))
        return exp_ * (1 + erf_) / 2


# Name -> callable, for resolving functions named in configuration
FUNCTIONS = {
    "clean": clean,
    "bound": bound,
    "sign": sign,
    "dsign": dsign,
    "Mxx": Mxx,
    "MT": MT,
    "SignedDeltaPhi": SignedDeltaPhi,
    "DeltaR2": DeltaR2,
    "ExpErf": ExpErf,
}
