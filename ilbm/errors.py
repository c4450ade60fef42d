class DecodeError(Exception):
    """Base class for every failure raised while decoding an IFF image."""

    def __init__(self, message: str, tag: bytes = None, offset: int = None):
        self.message = message
        self.tag = tag
        self.offset = offset
        super().__init__(str(self))

    def __str__(self):
        where = []
        if self.tag is not None:
            where.append(self.tag.decode('latin-1'))
        if self.offset is not None:
            where.append(f'offset {self.offset}')
        if where:
            return f"{self.message} ({', '.join(where)})"
        return self.message


class UnsupportedFormType(DecodeError):
    pass


class MissingHeader(DecodeError):
    pass


class MissingBody(DecodeError):
    pass


class MalformedPalette(DecodeError):
    pass


class TruncatedChunk(DecodeError):
    pass


class ShortRow(DecodeError):
    """The compressed or raw BODY ran out before a row was complete.

    `row` holds the bytes that were produced for the incomplete row and
    `row_index` its position in the sequence of stored rows.
    """

    def __init__(self, message: str, row: bytes = b'', row_index: int = None,
                 tag: bytes = None, offset: int = None):
        self.row = row
        self.row_index = row_index
        super().__init__(message, tag, offset)


class InvalidDimensions(DecodeError):
    pass


class UnsupportedPlaneCount(DecodeError):
    pass


class UnsupportedCompression(DecodeError):
    pass


class UnsupportedOption(DecodeError):
    pass
