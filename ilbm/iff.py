"""Generic IFF container traversal.

An IFF file is a FORM chunk: the tag ``FORM``, a big-endian u32 length, a
four byte form type and then the child chunks. Every chunk is a tag, a u32
length, the payload and a pad byte when the length is odd.
"""

import logging
from collections import namedtuple
from struct import unpack

from .errors import TruncatedChunk, UnsupportedFormType

log = logging.getLogger(__name__)

FORM = b'FORM'

Chunk = namedtuple('Chunk', 'tag, data, offset')


class ByteBuffer:
    def __init__(self, data: bytes, end: int = None):
        self.data = data
        self.pos = 0
        self.end = len(data) if end is None else end

    def remaining(self):
        return self.end - self.pos

    def get_pos(self):
        return self.pos

    def skip(self, n: int):
        self.pos += n

    def get_bytes(self, n: int, tag: bytes = None):
        if n > self.remaining():
            raise TruncatedChunk(f'expected {n} bytes, only {self.remaining()} left', tag, self.pos)
        self.pos += n
        return bytes(self.data[self.pos - n:self.pos])

    def get_long(self) -> int:
        return unpack('>L', self.get_bytes(4))[0]


def read_form(data: bytes):
    """Validate the FORM header and return ``(form_type, chunks)``.

    ``chunks`` is a lazy iterator of `Chunk` records for the immediate
    children of the FORM, in file order. Calling this again on the same
    buffer starts over; the buffer is never modified.
    """
    bb = ByteBuffer(data)
    tag = bb.get_bytes(4, FORM)
    if tag != FORM:
        raise UnsupportedFormType(f'expected FORM header, found {tag!r}', tag, 0)

    length = bb.get_long()
    if length > bb.remaining():
        raise TruncatedChunk(f'FORM declares {length} bytes but only {bb.remaining()} are present', FORM, 4)
    if length < 4:
        raise TruncatedChunk('FORM is too short to hold a form type', FORM, 4)

    bb.end = bb.get_pos() + length
    form_type = bb.get_bytes(4, FORM)
    log.debug('FORM %r, length %d', form_type, length)
    return form_type, _iter_chunks(bb)


def _iter_chunks(bb: ByteBuffer):
    while bb.remaining() >= 8:
        offset = bb.get_pos()
        tag = bb.get_bytes(4)
        length = bb.get_long()
        if length > bb.remaining():
            raise TruncatedChunk(f'chunk declares {length} bytes but only {bb.remaining()} remain in FORM',
                                 tag, offset)
        payload = bb.get_bytes(length, tag)
        # Some writers drop the pad byte after the last chunk
        if length & 1 and bb.remaining() > 0:
            bb.skip(1)
        log.debug('chunk %r at %d, length %d', tag, offset, length)
        yield Chunk(tag, payload, offset)

    if bb.remaining() > 0:
        raise TruncatedChunk(f'{bb.remaining()} bytes at end of FORM are too few for a chunk header',
                             None, bb.get_pos())


def read_chunks(data: bytes):
    """Iterate over the child chunks of the FORM held in `data`."""
    return read_form(data)[1]
