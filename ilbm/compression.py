"""BODY decompression.

ByteRun1 is the PackBits variant used by ILBM. Starting from a control
byte ``n`` read as a signed value:

    0 <= n <= 127     copy the next n+1 bytes literally
    -127 <= n <= -1   repeat the next byte 1-n times
    n == -128         no operation

Runs never cross a row boundary in well formed files; anything that would
spill over is cut off at the end of the row.
"""

import enum
import logging

from .errors import (ShortRow, TruncatedChunk, UnsupportedCompression,
                     UnsupportedOption)
from .header import Compression

log = logging.getLogger(__name__)

BODY = b'BODY'


class ShortRowPolicy(str, enum.Enum):
    TRUNCATE = 'truncate'
    ZERO_PAD = 'zero_pad'
    FAIL = 'fail'


def unpack_row(data: bytes, pos: int, stride: int, row_index: int = None, base: int = 0):
    """Decode one row of `stride` bytes starting at `pos`.

    Returns ``(row, pos)`` with `pos` just past the consumed source bytes.
    Raises `ShortRow` when the source ends between runs before the row is
    complete, and `TruncatedChunk` when it ends inside the part of a run the
    row still needs. Error offsets are `base` plus the position in `data`.
    """
    row = bytearray()
    end = len(data)

    while len(row) < stride:
        if pos >= end:
            raise ShortRow(f'row {row_index} has {len(row)} of {stride} bytes', bytes(row), row_index,
                           BODY, base + pos)

        n = data[pos]
        pos += 1
        if n < 128:
            needed = min(n + 1, stride - len(row))
            if pos + needed > end:
                raise TruncatedChunk(f'literal run of {n + 1} bytes runs past end of data', BODY, base + pos - 1)
            row += data[pos:pos + needed]
            pos = min(pos + n + 1, end)
        elif n != 128:
            count = 257 - n
            if pos >= end:
                raise TruncatedChunk('repeat run is missing its byte', BODY, base + pos - 1)
            row += bytes([data[pos]]) * min(count, stride - len(row))
            pos += 1

    return bytes(row), pos


def iter_rows(data: bytes, compression: int, stride: int, count: int, base: int = 0):
    """Yield `count` rows of exactly `stride` bytes from BODY `data`.

    `base` is the file offset of `data`, used only in error reports.
    """
    if compression == Compression.BYTE_RUN1:
        pos = 0
        for index in range(count):
            row, pos = unpack_row(data, pos, stride, index, base)
            yield row
    elif compression == Compression.NONE:
        for index in range(count):
            start = index * stride
            row = data[start:start + stride]
            if len(row) < stride:
                raise ShortRow(f'row {index} has {len(row)} of {stride} bytes', bytes(row), index,
                               BODY, base + start)
            yield bytes(row)
    else:
        raise UnsupportedCompression(f'compression method {compression} is not supported', b'BMHD')


def decompress(data: bytes, compression: int, stride: int, count: int,
               on_short_row=ShortRowPolicy.FAIL, base: int = 0):
    """Expand a BODY into a list of rows, applying `on_short_row` if it runs out.

    With ``truncate`` the partial row and everything after it are dropped,
    so fewer than `count` rows may come back. With ``zero_pad`` the partial
    row and any missing rows are filled with zeros.
    """
    try:
        policy = ShortRowPolicy(on_short_row)
    except ValueError:
        raise UnsupportedOption(f'unknown short row policy {on_short_row!r}') from None

    rows = []
    try:
        for row in iter_rows(data, compression, stride, count, base):
            rows.append(row)
    except ShortRow as e:
        if policy == ShortRowPolicy.FAIL:
            raise
        if policy == ShortRowPolicy.ZERO_PAD:
            log.warning('BODY ended at row %d of %d, zero padding', len(rows), count)
            rows.append(e.row.ljust(stride, b'\0'))
            rows.extend(bytes(stride) for _ in range(count - len(rows)))
        else:
            log.warning('BODY ended at row %d of %d, truncating', len(rows), count)
    return rows
