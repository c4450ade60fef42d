from PIL import Image

from .decoder import DecodedImage


def to_image(decoded: DecodedImage, y_scaling: int = 1) -> Image.Image:
    """Build a Pillow image from `decoded`.

    Indexed images become mode ``P`` (when the palette fits in 256 entries),
    everything else ``RGB``; a mask turns either into ``RGBA``. `y_scaling`
    repeats every scanline, which suits interlaced or low-res Amiga sources.
    """
    W, H = decoded.width, decoded.height

    if decoded.is_indexed and len(decoded.palette) <= 256:
        im = Image.frombytes('P', (W, H), bytes(iter(decoded.pixels)))
        im.putpalette([c for rgb in decoded.palette for c in rgb])
    else:
        im = Image.frombytes('RGB', (W, H), decoded.to_rgb())

    if decoded.mask is not None:
        im = im.convert('RGBA')
        im.putalpha(Image.frombytes('L', (W, H), bytes(255 if m else 0 for m in decoded.mask)))

    if y_scaling != 1:
        im = im.resize((W, H * y_scaling), Image.NEAREST)
    return im
