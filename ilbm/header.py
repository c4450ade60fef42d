"""Collect the image describing chunks of an ILBM/PBM FORM into one descriptor."""

import enum
import logging
from collections import namedtuple
from dataclasses import dataclass, field
from struct import unpack
from typing import List, Optional, Tuple

from .errors import (InvalidDimensions, MalformedPalette, MissingHeader,
                     TruncatedChunk, UnsupportedFormType)
from .iff import Chunk, read_form

log = logging.getLogger(__name__)

ILBM = b'ILBM'
PBM = b'PBM '
FORM_TYPES = (ILBM, PBM)

BMHD_SIZE = 20

BitmapHeader = namedtuple('BitmapHeader', 'width, height, x, y, planes, masking, compression, pad1, transparent_color, x_aspect, y_aspect, page_width, page_height')


class Masking(enum.IntEnum):
    NONE = 0
    HAS_MASK = 1
    HAS_TRANSPARENT_COLOR = 2
    LASSO = 3


class Compression(enum.IntEnum):
    NONE = 0
    BYTE_RUN1 = 1


class ViewportMode(enum.IntFlag):
    """Amiga display mode flags from the CAMG chunk."""
    NONE = 0
    GENLOCK_VIDEO = 0x0002
    LACE = 0x0004
    SUPERHIRES = 0x0020
    PFBA = 0x0040
    EXTRA_HALFBRITE = 0x0080
    GENLOCK_AUDIO = 0x0100
    DUALPF = 0x0400
    HAM = 0x0800
    EXTENDED_MODE = 0x1000
    VP_HIDE = 0x2000
    SPRITES = 0x4000
    HIRES = 0x8000

    @property
    def is_ham(self):
        return bool(self & ViewportMode.HAM)

    @property
    def is_halfbrite(self):
        return bool(self & ViewportMode.EXTRA_HALFBRITE)

    @property
    def is_interlace(self):
        return bool(self & ViewportMode.LACE)

    @property
    def is_hires(self):
        return bool(self & ViewportMode.HIRES)


# Color cycling metadata. `low`/`high` are the register range, `data` the
# whole payload so that DRNG cells survive untouched.
ColorRange = namedtuple('ColorRange', 'tag, low, high, rate, flags, data')


@dataclass
class ImageDescriptor:
    form_type: bytes
    header: BitmapHeader
    palette: List[Tuple[int, int, int]] = field(default_factory=list)
    viewport_mode: ViewportMode = ViewportMode.NONE
    has_camg: bool = False
    color_ranges: List[ColorRange] = field(default_factory=list)
    dpi: Optional[Tuple[int, int]] = None
    body: Optional[bytes] = field(default=None, repr=False)
    body_offset: Optional[int] = None
    chunk_tags: List[bytes] = field(default_factory=list)
    extra_chunks: List[Chunk] = field(default_factory=list, repr=False)

    @property
    def width(self):
        return self.header.width

    @property
    def height(self):
        return self.header.height

    @property
    def planes(self):
        return self.header.planes

    @property
    def is_chunky(self):
        return self.form_type == PBM


def read_bitmap_header(chunk: Chunk) -> BitmapHeader:
    if len(chunk.data) < BMHD_SIZE:
        raise TruncatedChunk(f'BMHD needs {BMHD_SIZE} bytes, got {len(chunk.data)}', chunk.tag, chunk.offset)

    bmhd = BitmapHeader(*unpack('>HHhhBBBBHBBHH', chunk.data[:BMHD_SIZE]))

    if bmhd.width == 0 or bmhd.height == 0:
        raise InvalidDimensions(f'image size {bmhd.width}x{bmhd.height} must be non-zero', chunk.tag, chunk.offset)

    try:
        masking = Masking(bmhd.masking)
    except ValueError:
        log.warning('masking value %d unsupported, treating as none', bmhd.masking)
        masking = Masking.NONE

    return bmhd._replace(masking=masking)


def read_color_map(chunk: Chunk) -> List[Tuple[int, int, int]]:
    data = chunk.data
    if len(data) % 3:
        raise MalformedPalette(f'CMAP length {len(data)} is not a multiple of 3', chunk.tag, chunk.offset)
    return [tuple(data[i:i + 3]) for i in range(0, len(data), 3)]


def read_viewport_mode(chunk: Chunk) -> Optional[ViewportMode]:
    if len(chunk.data) < 4:
        log.warning('CAMG at %d has only %d bytes, ignoring it', chunk.offset, len(chunk.data))
        return None
    return ViewportMode(unpack('>L', chunk.data[:4])[0])


def read_color_range(chunk: Chunk) -> Optional[ColorRange]:
    data = chunk.data
    if chunk.tag == b'CRNG':
        if len(data) < 8:
            log.warning('CRNG at %d has only %d bytes, ignoring it', chunk.offset, len(data))
            return None
        _pad, rate, flags, low, high = unpack('>hhhBB', data[:8])
    else:
        if len(data) < 8:
            log.warning('DRNG at %d has only %d bytes, ignoring it', chunk.offset, len(data))
            return None
        low, high, rate, flags = unpack('>BBhh', data[:6])
    return ColorRange(chunk.tag, low, high, rate, flags, data)


def read_dpi(chunk: Chunk) -> Optional[Tuple[int, int]]:
    if len(chunk.data) < 4:
        log.warning('DPI at %d has only %d bytes, ignoring it', chunk.offset, len(chunk.data))
        return None
    return unpack('>HH', chunk.data[:4])


def build(form_type: bytes, chunks) -> ImageDescriptor:
    """Fold a FORM's chunk sequence into an `ImageDescriptor`.

    Chunks are buffered, so BMHD, CMAP and CAMG may appear anywhere in the
    FORM. Only the first BMHD and the first BODY are used.
    """
    if form_type not in FORM_TYPES:
        raise UnsupportedFormType(f'form type {form_type!r} is not ILBM or PBM', form_type, 8)

    header = None
    palette = []
    mode = None
    color_ranges = []
    dpi = None
    body = None
    body_offset = None
    chunk_tags = []
    extra_chunks = []

    for chunk in chunks:
        chunk_tags.append(chunk.tag)

        if chunk.tag == b'BMHD':
            if header is not None:
                log.warning('duplicate BMHD at %d ignored', chunk.offset)
                continue
            header = read_bitmap_header(chunk)
        elif chunk.tag == b'CMAP':
            palette = read_color_map(chunk)
        elif chunk.tag == b'CAMG':
            mode = read_viewport_mode(chunk)
        elif chunk.tag in (b'CRNG', b'DRNG'):
            color_range = read_color_range(chunk)
            if color_range is not None:
                color_ranges.append(color_range)
        elif chunk.tag == b'DPI ':
            dpi = read_dpi(chunk) or dpi
        elif chunk.tag == b'BODY':
            if body is not None:
                log.warning('duplicate BODY at %d ignored', chunk.offset)
                continue
            body = chunk.data
            body_offset = chunk.offset + 8
        else:
            log.debug('keeping unknown chunk %r', chunk.tag)
            extra_chunks.append(chunk)

    if header is None:
        raise MissingHeader('FORM has no BMHD chunk', b'BMHD')

    has_camg = mode is not None
    if not has_camg:
        mode = ViewportMode.NONE
        # Some HAM6 files were written without a CAMG chunk
        if header.planes == 6 and len(palette) == 16:
            log.info('no CAMG, 6 planes and 16 colors: assuming HAM6')
            mode = ViewportMode.HAM

    return ImageDescriptor(
        form_type=form_type,
        header=header,
        palette=palette,
        viewport_mode=mode,
        has_camg=has_camg,
        color_ranges=color_ranges,
        dpi=dpi,
        body=body,
        body_offset=body_offset,
        chunk_tags=chunk_tags,
        extra_chunks=extra_chunks,
    )


def parse(data: bytes) -> ImageDescriptor:
    form_type, chunks = read_form(data)
    return build(form_type, chunks)
