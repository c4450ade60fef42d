"""Decoder for Amiga IFF ILBM and PBM images."""

import logging

from .color import ColorMode
from .compression import ShortRowPolicy
from .decoder import (DecodedImage, DecodeOptions, decode_descriptor,
                      decode_image, decode_image_with, parse_descriptor)
from .errors import (DecodeError, InvalidDimensions, MalformedPalette,
                     MissingBody, MissingHeader, ShortRow, TruncatedChunk,
                     UnsupportedCompression, UnsupportedFormType, UnsupportedOption,
                     UnsupportedPlaneCount)
from .header import (BitmapHeader, ColorRange, Compression, ImageDescriptor,
                     Masking, ViewportMode)
from .iff import Chunk, read_chunks, read_form

__version__ = '0.1.0'

logging.getLogger(__name__).addHandler(logging.NullHandler())
