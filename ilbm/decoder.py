"""Decode ILBM and PBM files held in memory.

    >>> image = decode_image(data)
    >>> image.width, image.height, image.pixel(0, 0)

Nothing here touches the file system; callers read the file themselves.
"""

import logging
from collections import namedtuple
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from . import color
from .color import ColorMode
from .compression import ShortRowPolicy, decompress
from .errors import MissingBody, ShortRow, UnsupportedPlaneCount
from .header import ImageDescriptor, parse
from .planes import reconstruct, row_stride, stored_planes

log = logging.getLogger(__name__)

DecodeOptions = namedtuple('DecodeOptions', 'force_rgb_output, on_short_row, scale_4bit_palette, page_scale',
                           defaults=(False, ShortRowPolicy.FAIL, True, False))


@dataclass
class DecodedImage:
    width: int
    height: int
    color_mode: ColorMode
    # array of palette indices when `palette` is set, otherwise RGB bytes
    pixels: object = field(repr=False)
    palette: Optional[List[Tuple[int, int, int]]] = None
    mask: Optional[bytearray] = field(default=None, repr=False)

    @property
    def is_indexed(self):
        return self.palette is not None

    def pixel(self, x: int, y: int) -> Tuple[int, int, int]:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f'pixel ({x}, {y}) outside {self.width}x{self.height} image')
        i = y * self.width + x
        if self.is_indexed:
            return self.palette[self.pixels[i]]
        return tuple(self.pixels[i * 3:i * 3 + 3])

    def to_rgb(self) -> bytes:
        if not self.is_indexed:
            return bytes(self.pixels)
        return b''.join(bytes(self.palette[i]) for i in self.pixels)


def parse_descriptor(data: bytes) -> ImageDescriptor:
    """Read the metadata of an image without decoding its pixels."""
    return parse(data)


def decode_image(data: bytes) -> DecodedImage:
    return decode_image_with(data, DecodeOptions())


def decode_image_with(data: bytes, options: DecodeOptions) -> DecodedImage:
    descriptor = parse(data)
    return decode_descriptor(descriptor, options)


def _palette_for(descriptor: ImageDescriptor, mode: ColorMode, options: DecodeOptions):
    palette = descriptor.palette
    if options.scale_4bit_palette and color.is_4bit_palette(palette):
        log.info('palette uses 4 bit components, scaling to 8 bits')
        palette = color.expand_4bit_palette(palette)

    if not palette and mode in (ColorMode.STANDARD, ColorMode.EHB):
        planes = 8 if descriptor.is_chunky else descriptor.planes
        if planes > 8:
            raise UnsupportedPlaneCount(f'{planes} planes without a CMAP cannot be indexed', b'BMHD')
        log.debug('no CMAP, using a %d plane grey palette', planes)
        palette = color.grey_palette(planes)
    return palette


def _double_width(values, width: int, height: int, channels: int):
    out = values[:0]
    step = width * channels
    for y in range(height):
        row = values[y * step:(y + 1) * step]
        for x in range(width):
            px = row[x * channels:(x + 1) * channels]
            out += px
            out += px
    return out


def decode_descriptor(descriptor: ImageDescriptor, options: DecodeOptions = DecodeOptions()) -> DecodedImage:
    header = descriptor.header
    chunky = descriptor.is_chunky
    planes = 8 if chunky else header.planes

    if descriptor.body is None:
        raise MissingBody('FORM has no BODY chunk', b'BODY')

    mode = color.select_mode(descriptor.viewport_mode, planes, descriptor.palette)
    palette = _palette_for(descriptor, mode, options)
    log.debug('%s %dx%d, %d planes, mode %s', descriptor.form_type, header.width, header.height,
              planes, mode.value)

    stride = row_stride(header.width, chunky)
    count = header.height * stored_planes(header, chunky)
    rows = decompress(descriptor.body, header.compression, stride, count, options.on_short_row,
                      descriptor.body_offset or 0)

    samples, mask, height = reconstruct(rows, header, chunky)
    if height == 0:
        raise ShortRow('BODY does not hold a single complete scanline', b'', 0, b'BODY', descriptor.body_offset)

    pixels, out_palette = color.resolve(samples, header.width, height, planes, palette, mode,
                                        options.force_rgb_output)

    width = header.width
    if options.page_scale and header.page_width < header.page_height:
        log.debug('doubling width for page %dx%d', header.page_width, header.page_height)
        pixels = _double_width(pixels, width, height, 1 if out_palette is not None else 3)
        if mask is not None:
            mask = _double_width(mask, width, height, 1)
        width *= 2

    return DecodedImage(width, height, mode, pixels, out_palette, mask)
