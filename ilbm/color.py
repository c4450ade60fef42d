"""Map raw pixel samples to colors.

The color mode is picked once per image from the viewport flags, plane
count and palette, then every row is resolved with that mode. HAM rows
start from black and carry the previous pixel's color along the row.
"""

import enum
import logging
from array import array

from .errors import UnsupportedPlaneCount

log = logging.getLogger(__name__)

BLACK = (0, 0, 0)
HAM_SEED = BLACK


class ColorMode(enum.Enum):
    STANDARD = 'standard'
    EHB = 'ehb'
    HAM6 = 'ham6'
    HAM8 = 'ham8'
    DIRECT = 'direct'


def is_4bit_palette(palette) -> bool:
    """True when no component uses its low nibble, as old 4-bit writers left them."""
    return bool(palette) and not any(c & 0x0f for rgb in palette for c in rgb)


def expand_4bit_palette(palette):
    return [tuple(c | c >> 4 for c in rgb) for rgb in palette]


def grey_palette(planes: int):
    count = 1 << planes
    if count == 1:
        return [BLACK]
    return [(v, v, v) for v in (i * 255 // (count - 1) for i in range(count))]


def select_mode(viewport_mode, planes: int, palette) -> ColorMode:
    if viewport_mode.is_ham:
        if planes == 6:
            return ColorMode.HAM6
        if planes == 8:
            return ColorMode.HAM8
        raise UnsupportedPlaneCount(f'HAM needs 6 or 8 planes, not {planes}', b'CAMG')
    if planes >= 24:
        if palette:
            log.debug('ignoring %d entry palette for %d plane image', len(palette), planes)
        return ColorMode.DIRECT
    if viewport_mode.is_halfbrite:
        return ColorMode.EHB
    return ColorMode.STANDARD


def lookup(palette, index: int):
    """Palette entry `index`, clamped to the last entry."""
    if not palette:
        return BLACK
    if index >= len(palette):
        index = len(palette) - 1
    return palette[index]


def _resolve_ham(samples, width: int, height: int, palette, data_bits: int):
    out = bytearray(width * height * 3)
    data_mask = (1 << data_bits) - 1
    if data_bits == 4:
        expand = [v | v << 4 for v in range(16)]
    else:
        expand = [v << 2 | v >> 4 for v in range(64)]

    for y in range(height):
        r, g, b = HAM_SEED
        for x in range(width):
            s = samples[y * width + x]
            control = (s >> data_bits) & 0x3
            value = s & data_mask
            if control == 0:
                r, g, b = lookup(palette, value)
            elif control == 1:
                b = expand[value]
            elif control == 2:
                r = expand[value]
            else:
                g = expand[value]
            o = (y * width + x) * 3
            out[o:o + 3] = bytes((r, g, b))
    return out


def _resolve_ehb(samples, palette):
    out = bytearray()
    for s in samples:
        if 32 <= s < 64:
            r, g, b = lookup(palette, s - 32)
            out += bytes((r >> 1, g >> 1, b >> 1))
        else:
            out += bytes(lookup(palette, s))
    return out


def _resolve_direct(samples, planes: int):
    if planes == 32:
        bits = 8  # top byte is alpha, dropped
    else:
        bits = planes // 3
    mask = (1 << bits) - 1
    shift = bits - 8
    out = bytearray()
    for s in samples:
        out += bytes(((s & mask) >> shift,
                      ((s >> bits) & mask) >> shift,
                      ((s >> (2 * bits)) & mask) >> shift))
    return out


def resolve_rgb(samples, width: int, height: int, planes: int, palette, mode: ColorMode) -> bytearray:
    """Resolve every sample to an RGB triple, row major."""
    if mode == ColorMode.HAM6:
        return _resolve_ham(samples, width, height, palette, 4)
    if mode == ColorMode.HAM8:
        return _resolve_ham(samples, width, height, palette, 6)
    if mode == ColorMode.EHB:
        return _resolve_ehb(samples, palette)
    if mode == ColorMode.DIRECT:
        return _resolve_direct(samples, planes)
    out = bytearray()
    for s in samples:
        out += bytes(lookup(palette, s))
    return out


def resolve(samples, width: int, height: int, planes: int, palette, mode: ColorMode, force_rgb: bool = False):
    """Return ``(pixels, palette)``.

    Standard images keep their index buffer, with out of range indices
    clamped to the last palette entry. Everything else, or any image when
    `force_rgb` is set, comes back as an RGB bytearray with palette None.
    """
    if mode == ColorMode.STANDARD and not force_rgb:
        if not palette:
            log.warning('indexed image without palette entries, using black')
            palette = [BLACK]
        last = len(palette) - 1
        if max(samples, default=0) > last:
            log.debug('clamping indices above %d', last)
            samples = array(samples.typecode, (min(s, last) for s in samples))
        return samples, list(palette)
    return resolve_rgb(samples, width, height, planes, palette, mode), None
