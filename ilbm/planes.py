"""Turn decompressed BODY rows into one raw sample per pixel."""

import logging
from array import array

from .errors import UnsupportedPlaneCount
from .header import Masking

log = logging.getLogger(__name__)

MAX_PLANES = 32


def row_stride(width: int, chunky: bool = False) -> int:
    """Bytes per stored row: one per pixel for PBM, word aligned per plane for ILBM."""
    if chunky:
        return width
    return ((width + 15) // 16) * 2


def stored_planes(header, chunky: bool = False) -> int:
    """Number of rows stored in BODY for each scanline."""
    if chunky:
        return 1
    if header.masking == Masking.HAS_MASK:
        return header.planes + 1
    return header.planes


def sample_typecode(planes: int) -> str:
    for typecode in ('B', 'H', 'L'):
        if planes <= array(typecode).itemsize * 8:
            return typecode
    raise UnsupportedPlaneCount(f'{planes} planes do not fit a pixel sample', b'BMHD')


def _or_plane(acc, plane_row: bytes, width: int, base: int, bit: int):
    for x in range(width):
        if plane_row[x >> 3] & (0x80 >> (x & 7)):
            acc[base + x] |= bit


def reconstruct(rows, header, chunky: bool = False):
    """Build ``(samples, mask, height)`` from `rows`.

    `samples` is an `array` of ``width * height`` unsigned values, `mask` a
    bytearray with 1 for opaque and 0 for transparent pixels, or None when
    the header declares no mask. `height` may be less than the header's
    when `rows` stops early; only complete scanlines are used.
    """
    width = header.width
    planes = 8 if chunky else header.planes
    if planes > MAX_PLANES:
        raise UnsupportedPlaneCount(f'{planes} planes is more than {MAX_PLANES}', b'BMHD')

    per_line = stored_planes(header, chunky)
    if per_line:
        height = min(header.height, len(rows) // per_line)
    else:
        height = header.height
    if height < header.height:
        log.warning('only %d of %d scanlines available', height, header.height)

    samples = array(sample_typecode(planes), [0]) * (width * height)
    has_mask_plane = not chunky and header.masking == Masking.HAS_MASK
    mask = bytearray(width * height) if has_mask_plane else None

    for y in range(height):
        base = y * width
        if chunky:
            samples[base:base + width] = array(samples.typecode, rows[y][:width])
            continue

        line = rows[y * per_line:(y + 1) * per_line]
        for plane in range(header.planes):
            _or_plane(samples, line[plane], width, base, 1 << plane)
        if has_mask_plane:
            _or_plane(mask, line[header.planes], width, base, 1)

    if header.masking == Masking.HAS_TRANSPARENT_COLOR:
        transparent = header.transparent_color
        mask = bytearray(0 if s == transparent else 1 for s in samples)

    return samples, mask, height
