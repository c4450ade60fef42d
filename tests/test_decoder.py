import pytest

from ilbm import (ColorMode, DecodeError, DecodeOptions, InvalidDimensions,
                  MalformedPalette, MissingBody, MissingHeader, ShortRow,
                  ShortRowPolicy, TruncatedChunk, UnsupportedCompression,
                  UnsupportedFormType, UnsupportedPlaneCount, decode_image,
                  decode_image_with, parse_descriptor)

from iff_builder import (EHB, HAM, bmhd, body, camg, chunk, cmap, form,
                         pack_bits, palette, planar_rows)

PIXELS = [[0, 1, 2, 3, 3, 2, 1, 0, 1, 1],
          [3, 3, 3, 3, 0, 0, 0, 0, 2, 1]]


def ilbm_file(pixels, planes, pal, compression=0, extra=(), **kw):
    width = len(pixels[0])
    rows = planar_rows(pixels, planes, width, kw.pop('mask_rows', None))
    if compression:
        data = b''.join(pack_bits(row) for row in rows)
    else:
        data = b''.join(rows)
    chunks = [bmhd(width, len(pixels), planes, compression=compression, **kw)]
    if pal:
        chunks.append(cmap(pal))
    chunks.extend(extra)
    chunks.append(body(data))
    return form(chunks)


@pytest.mark.parametrize('compression', [0, 1])
def test_decode_indexed(compression):
    pal = palette(4)
    image = decode_image(ilbm_file(PIXELS, 2, pal, compression))

    assert (image.width, image.height) == (10, 2)
    assert image.is_indexed
    assert image.color_mode == ColorMode.STANDARD
    assert list(image.pixels) == PIXELS[0] + PIXELS[1]
    assert image.palette == pal
    assert image.pixel(2, 0) == pal[2]
    assert image.mask is None


@pytest.mark.parametrize('planes', [1, 2, 3, 4, 5])
def test_index_buffer_matches_palette_lookup(planes):
    pal = palette(1 << planes)
    pixels = [[(x * 7 + y * 3) % (1 << planes) for x in range(21)] for y in range(3)]
    image = decode_image(ilbm_file(pixels, planes, pal, compression=1))

    expected = b''.join(bytes(pal[v]) for row in pixels for v in row)
    assert image.to_rgb() == expected


def test_force_rgb_output():
    pal = palette(4)
    image = decode_image_with(ilbm_file(PIXELS, 2, pal), DecodeOptions(force_rgb_output=True))

    assert not image.is_indexed
    assert image.pixel(3, 1) == pal[3]
    assert len(image.pixels) == 10 * 2 * 3


def test_camg_after_body_still_applies():
    pal = palette(32)
    data = form([bmhd(2, 1, 6), cmap(pal), body(b''.join(planar_rows([[33, 1]], 6, 2))), camg(EHB)])
    image = decode_image(data)

    r, g, b = pal[1]
    assert image.color_mode == ColorMode.EHB
    assert image.pixel(0, 0) == (r >> 1, g >> 1, b >> 1)
    assert image.pixel(1, 0) == pal[1]


def test_ham6_image():
    pal = palette(16)
    pal[3] = (0x12, 0x34, 0x56)
    image = decode_image(ilbm_file([[3, 0b101111]], 6, pal, extra=[camg(HAM)]))

    assert image.color_mode == ColorMode.HAM6
    assert not image.is_indexed
    assert image.pixel(0, 0) == (0x12, 0x34, 0x56)
    assert image.pixel(1, 0) == (0xff, 0x34, 0x56)


def test_ham8_with_4bit_palette_is_scaled():
    pal = [(0x10 * (i % 16), 0, 0xf0) for i in range(64)]
    image = decode_image(ilbm_file([[2]], 8, pal, extra=[camg(HAM)]))

    assert image.color_mode == ColorMode.HAM8
    assert image.pixel(0, 0) == (0x22, 0, 0xff)


def test_4bit_palette_scaling_can_be_disabled():
    pal = [(0xf0, 0x00, 0x80), (0x00, 0xf0, 0x00)]
    data = ilbm_file([[0, 1]], 1, pal)

    assert decode_image(data).palette == [(0xff, 0x00, 0x88), (0x00, 0xff, 0x00)]
    assert decode_image_with(data, DecodeOptions(scale_4bit_palette=False)).palette == pal


def test_deep_image_without_palette():
    pixels = [[0x563412, 0x000000, 0xffffff]]
    image = decode_image(ilbm_file(pixels, 24, None, compression=1))

    assert image.color_mode == ColorMode.DIRECT
    assert image.pixel(0, 0) == (0x12, 0x34, 0x56)
    assert image.pixel(2, 0) == (0xff, 0xff, 0xff)


def test_pbm_chunky_image():
    pal = palette(256)
    rows = [bytes([0, 17, 255]), bytes([4, 4, 4])]
    data = form([bmhd(3, 2, 8, compression=1), cmap(pal), body(b''.join(pack_bits(r) for r in rows))], b'PBM ')
    image = decode_image(data)

    assert list(image.pixels) == [0, 17, 255, 4, 4, 4]
    assert image.pixel(2, 0) == pal[255]


def test_mask_plane_is_carried_through():
    image = decode_image(ilbm_file([[1, 0, 1, 1]], 1, palette(2), masking=1, mask_rows=[[1, 0, 0, 1]]))

    assert list(image.pixels) == [1, 0, 1, 1]
    assert list(image.mask) == [1, 0, 0, 1]


def test_transparent_color_mask_survives_rgb():
    image = decode_image_with(ilbm_file([[0, 1, 2]], 2, palette(4), masking=2, transparent_color=2),
                              DecodeOptions(force_rgb_output=True))
    assert list(image.mask) == [1, 1, 0]


def test_zero_planes():
    image = decode_image(form([bmhd(5, 2, 0), body(b'')]))

    assert list(image.pixels) == [0] * 10
    assert image.pixel(4, 1) == (0, 0, 0)


def test_missing_palette_uses_grey_ramp():
    image = decode_image(ilbm_file([[0, 1]], 1, None))
    assert image.pixel(1, 0) == (255, 255, 255)


def test_missing_palette_with_many_planes():
    with pytest.raises(UnsupportedPlaneCount):
        decode_image(ilbm_file([[0, 1]], 12, None))


def test_undersized_palette_is_clamped():
    pal = palette(2)
    image = decode_image(ilbm_file([[0, 1, 2, 3]], 2, pal))

    assert image.palette == pal
    assert [image.pixel(x, 0) for x in range(4)] == [pal[0], pal[1], pal[1], pal[1]]


def test_page_scale_doubles_pixels():
    data = ilbm_file([[0, 1]], 1, palette(2), page_width=320, page_height=400)

    assert decode_image(data).width == 2
    image = decode_image_with(data, DecodeOptions(page_scale=True))
    assert image.width == 4
    assert list(image.pixels) == [0, 0, 1, 1]


def short_body_file():
    return form([bmhd(8, 3, 1), cmap(palette(2)), body(b'\xff\x00\xf0')])


def test_short_body_fails_by_default():
    with pytest.raises(ShortRow) as e:
        decode_image(short_body_file())
    assert e.value.row == b'\xf0'


def test_short_body_zero_padded():
    image = decode_image_with(short_body_file(), DecodeOptions(on_short_row=ShortRowPolicy.ZERO_PAD))

    assert image.height == 3
    assert list(image.pixels) == [1] * 8 + [1, 1, 1, 1, 0, 0, 0, 0] + [0] * 8


def test_short_body_truncated():
    image = decode_image_with(short_body_file(), DecodeOptions(on_short_row='truncate'))

    assert image.height == 1
    assert list(image.pixels) == [1] * 8


def test_truncate_with_no_complete_scanline():
    data = form([bmhd(8, 1, 1), body(b'\xff')])
    with pytest.raises(ShortRow):
        decode_image_with(data, DecodeOptions(on_short_row='truncate'))


def test_truncated_form():
    data = ilbm_file(PIXELS, 2, palette(4))
    with pytest.raises(TruncatedChunk):
        decode_image(data[:len(data) // 2])


def test_metadata_only_and_missing_body():
    data = form([bmhd(8, 8, 3), cmap(palette(8))])

    assert parse_descriptor(data).planes == 3
    with pytest.raises(MissingBody):
        decode_image(data)


def test_unsupported_compression():
    with pytest.raises(UnsupportedCompression):
        decode_image(form([bmhd(8, 1, 1, compression=2), body(b'\0\0')]))


@pytest.mark.parametrize('error', [UnsupportedFormType, MissingHeader, MalformedPalette, TruncatedChunk,
                                   ShortRow, InvalidDimensions, UnsupportedPlaneCount, MissingBody,
                                   UnsupportedCompression])
def test_errors_share_a_base(error):
    assert issubclass(error, DecodeError)


def test_error_message_names_chunk_and_offset():
    with pytest.raises(MalformedPalette) as e:
        decode_image(form([bmhd(8, 1, 1), chunk(b'CMAP', b'\1\2\3\4')]))
    assert str(e.value).endswith('(CMAP, offset 40)')


def test_compressed_literal_run_ending_with_body():
    data = form([bmhd(8, 1, 1, compression=1), cmap(palette(2)), body(bytes([2, 0xff, 0x00]))])
    image = decode_image(data)

    assert list(image.pixels) == [1] * 8


def test_short_row_offset_is_a_file_offset():
    data = short_body_file()
    with pytest.raises(ShortRow) as e:
        decode_image(data)

    body_start = data.index(b'BODY') + 8
    assert e.value.offset == body_start + 2


def test_unknown_short_row_policy():
    from ilbm import UnsupportedOption
    with pytest.raises(UnsupportedOption):
        decode_image_with(short_body_file(), DecodeOptions(on_short_row='bogus'))


def test_pixel_outside_image():
    image = decode_image(ilbm_file(PIXELS, 2, palette(4)))

    with pytest.raises(IndexError):
        image.pixel(10, 0)
    with pytest.raises(IndexError):
        image.pixel(0, 2)
    with pytest.raises(IndexError):
        image.pixel(-1, 0)
