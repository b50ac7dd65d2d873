"""Color space conversions and distances used by the matcher.

Two spaces matter here:

- the fast space is OKLab, where plain Euclidean distance already tracks
  perceived difference reasonably well;
- the precise space is CIELAB (D65), where CIEDE2000 is evaluated.

RGB inputs are sRGB in unit range (``0..1``). Values outside that range are
allowed and carried through unclamped so out-of-gamut query colors still get
a meaningful position in both spaces. Use :func:`rgb8_to_unit` for catalog
values stored as 8-bit channels.
"""

from __future__ import annotations

import math

import numpy as np
from skimage import color as skcolor

from .models import RGB, FloatRGB, TargetColor

# Matrices from https://bottosson.github.io/posts/oklab/
_LINEAR_TO_LMS = np.array(
    [
        [0.4122214708, 0.5363325363, 0.0514459929],
        [0.2119034982, 0.6806995451, 0.1073969566],
        [0.0883024619, 0.2817188376, 0.6299787005],
    ],
    dtype=np.float64,
)
_LMS_TO_OKLAB = np.array(
    [
        [0.2104542553, 0.7936177850, -0.0040720468],
        [1.9779984951, -2.4285922050, 0.4505937099],
        [0.0259040371, 0.7827717662, -0.8086757660],
    ],
    dtype=np.float64,
)
_LMS_TO_LINEAR = np.linalg.inv(_LINEAR_TO_LMS)
_OKLAB_TO_LMS = np.linalg.inv(_LMS_TO_OKLAB)
# Same sRGB -> XYZ (D65) matrix skimage.color.rgb2xyz applies.
_LINEAR_TO_XYZ = np.array(
    [
        [0.412453, 0.357580, 0.180423],
        [0.212671, 0.715160, 0.072169],
        [0.019334, 0.119193, 0.950227],
    ],
    dtype=np.float64,
)

GAMUT_TOLERANCE = 1e-4


def rgb8_to_unit(rgb: RGB | np.ndarray) -> np.ndarray:
    return np.asarray(rgb, dtype=np.float64) / 255.0


def _srgb_to_linear(rgb: np.ndarray) -> np.ndarray:
    # Sign-preserving so negative (out-of-gamut) channels stay invertible.
    magnitude = np.abs(rgb)
    linear = np.where(
        magnitude <= 0.04045,
        magnitude / 12.92,
        np.power((magnitude + 0.055) / 1.055, 2.4),
    )
    return np.sign(rgb) * linear


def _linear_to_srgb(linear: np.ndarray) -> np.ndarray:
    magnitude = np.abs(linear)
    srgb = np.where(
        magnitude <= 0.0031308,
        magnitude * 12.92,
        1.055 * np.power(magnitude, 1.0 / 2.4) - 0.055,
    )
    return np.sign(linear) * srgb


def to_fast_space(rgb: FloatRGB | np.ndarray) -> np.ndarray:
    """Convert unit sRGB of shape ``(..., 3)`` to OKLab."""
    linear = _srgb_to_linear(np.asarray(rgb, dtype=np.float64))
    lms = linear @ _LINEAR_TO_LMS.T
    return np.cbrt(lms) @ _LMS_TO_OKLAB.T


def from_fast_space(oklab: np.ndarray) -> np.ndarray:
    lms = np.power(np.asarray(oklab, dtype=np.float64) @ _OKLAB_TO_LMS.T, 3)
    return _linear_to_srgb(lms @ _LMS_TO_LINEAR.T)


def to_precise_space(rgb: FloatRGB | np.ndarray) -> np.ndarray:
    """Convert unit sRGB of shape ``(..., 3)`` to CIELAB (D65).

    Linearisation is the same sign-preserving curve :func:`to_fast_space`
    uses, so an out-of-gamut target lands at the same color in both spaces.
    """
    rgb_arr = np.asarray(rgb, dtype=np.float64)
    xyz = _srgb_to_linear(rgb_arr) @ _LINEAR_TO_XYZ.T
    lab = skcolor.xyz2lab(xyz.reshape(1, -1, 3))
    return lab.reshape(rgb_arr.shape)


def cheap_distance(a: np.ndarray, b: np.ndarray) -> np.ndarray | float:
    """Euclidean distance in OKLab; broadcasts over leading axes."""
    distances = np.linalg.norm(
        np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64), axis=-1
    )
    if np.ndim(distances) == 0:
        return float(distances)
    return distances


def precise_distance(a: np.ndarray, b: np.ndarray) -> np.ndarray | float:
    """CIEDE2000 between CIELAB coordinates; broadcasts over leading axes.

    CIEDE2000 is not a metric. It can violate the triangle inequality, so
    distances are only comparable against the same reference color.
    """
    lab_a = np.asarray(a, dtype=np.float64)
    lab_b = np.asarray(b, dtype=np.float64)
    lab_a, lab_b = np.broadcast_arrays(lab_a, lab_b)
    shape = lab_a.shape[:-1]
    distances = skcolor.deltaE_ciede2000(
        lab_a.reshape(1, -1, 3), lab_b.reshape(1, -1, 3)
    ).reshape(shape)
    if np.ndim(distances) == 0:
        return float(distances)
    return distances


def oklch_to_oklab(l: float, c: float, h: float) -> np.ndarray:
    hue = math.radians(h)
    return np.array([l, c * math.cos(hue), c * math.sin(hue)], dtype=np.float64)


def oklab_to_oklch(oklab: np.ndarray) -> tuple[float, float, float]:
    l, a, b = (float(v) for v in np.asarray(oklab, dtype=np.float64).reshape(3))
    chroma = math.hypot(a, b)
    # Achromatic colors have no meaningful hue.
    hue = math.degrees(math.atan2(b, a)) % 360.0 if chroma > 1e-6 else 0.0
    return l, chroma, hue


def oklch_to_rgb(l: float, c: float, h: float) -> FloatRGB | None:
    """Convert OKLCH to unclamped unit sRGB.

    Returns ``None`` when the inputs or the result are not finite numbers.
    Channels may fall outside ``0..1`` for colors outside the sRGB gamut.
    """
    try:
        values = (float(l), float(c), float(h))
    except (TypeError, ValueError):
        return None
    if not all(math.isfinite(v) for v in values):
        return None

    rgb = from_fast_space(oklch_to_oklab(*values))
    if not np.all(np.isfinite(rgb)):
        return None
    return float(rgb[0]), float(rgb[1]), float(rgb[2])


def in_gamut(rgb: FloatRGB, tolerance: float = GAMUT_TOLERANCE) -> bool:
    return all(-tolerance <= channel <= 1.0 + tolerance for channel in rgb)


def oklch_to_rgb8(l: float, c: float, h: float, strict: bool = True) -> RGB | None:
    """Convert OKLCH to 8-bit sRGB.

    With ``strict`` an out-of-gamut color yields ``None`` rather than a clamped
    approximation. Without it the channels are clipped for display.
    """
    rgb = oklch_to_rgb(l, c, h)
    if rgb is None:
        return None
    if strict and not in_gamut(rgb):
        return None
    clipped = np.clip(np.round(np.asarray(rgb) * 255.0), 0, 255).astype(np.uint8)
    return int(clipped[0]), int(clipped[1]), int(clipped[2])


def rgb_to_oklch(rgb: RGB | FloatRGB, scale: float = 255.0) -> tuple[float, float, float]:
    unit = np.asarray(rgb, dtype=np.float64) / scale
    return oklab_to_oklch(to_fast_space(unit))


def target_from_rgb(rgb: RGB) -> TargetColor:
    l, c, h = rgb_to_oklch(rgb)
    return TargetColor(l=l, c=c, h=h)


def rgb_to_hex(rgb: RGB) -> str:
    return f"#{rgb[0]:02X}{rgb[1]:02X}{rgb[2]:02X}"


def oklch_to_css(l: float, c: float, h: float) -> str:
    return f"oklch({l * 100:.1f}% {c:.3f} {h:.1f})"


def oklch_to_hex(l: float, c: float, h: float) -> str:
    rgb = oklch_to_rgb8(l, c, h, strict=False)
    if rgb is None:
        return "#000000"
    return rgb_to_hex(rgb)


def oklch_to_rgb_css(l: float, c: float, h: float) -> str:
    rgb = oklch_to_rgb8(l, c, h, strict=False)
    if rgb is None:
        return "rgb(0, 0, 0)"
    return f"rgb({rgb[0]}, {rgb[1]}, {rgb[2]})"
