import io
from typing import Optional, Tuple

from PIL import Image, ImageStat


# Pillow format name -> MIME type of the encoded payload
OUTPUT_FORMATS = {
    'JPEG': 'image/jpeg',
    'WEBP': 'image/webp',
}


def decode_image(data: bytes) -> Image.Image:
    """Decode image bytes and force the pixel data to load."""
    img = Image.open(io.BytesIO(data))
    img.load()
    return img


def resize_to_target(img: Image.Image, width: Optional[int], height: Optional[int]) -> Image.Image:
    """Resize to exactly width x height, or pass through when no target is set."""
    if not width or not height:
        return img
    if img.size == (width, height):
        return img
    # BICUBIC is Pillow's catmull-rom (a = -0.5) kernel
    return img.resize((width, height), Image.Resampling.BICUBIC)


def to_rgb(img: Image.Image) -> Image.Image:
    """Flatten any mode (palette, alpha, greyscale) to RGB."""
    if img.mode == 'RGB':
        return img
    if img.mode in ('RGBA', 'LA') or (img.mode == 'P' and 'transparency' in img.info):
        rgba = img.convert('RGBA')
        background = Image.new('RGB', rgba.size, (0, 0, 0))
        background.paste(rgba, mask=rgba.split()[-1])
        return background
    return img.convert('RGB')


def representative_color(img: Image.Image) -> Tuple[int, int, int]:
    """Mean R, G, B over all pixels, truncated to 8-bit ints."""
    if img.mode != 'RGB':
        img = img.convert('RGB')
    stat = ImageStat.Stat(img)
    r, g, b = stat.mean[:3]
    return int(r), int(g), int(b)


def encode_image(img: Image.Image, output_format: str = 'JPEG', quality: int = 85) -> bytes:
    """
    Encode an image to the given output format.

    Raises:
        ValueError: unsupported output format
        OSError: encoder failure
    """
    output_format = output_format.upper()
    if output_format not in OUTPUT_FORMATS:
        raise ValueError(f"Unsupported output format: {output_format}")

    buf = io.BytesIO()
    to_rgb(img).save(buf, format=output_format, quality=quality)
    return buf.getvalue()
