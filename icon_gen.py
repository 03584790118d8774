"""Generate images with Pillow: the tray icon and round brand icons (in-memory)."""

import io
from datetime import date

from PIL import Image, ImageDraw, ImageFont, ImageOps, UnidentifiedImageError

PROMO_ORANGE = "#FFAB35"
PLACEHOLDER_GREY = "#E0E0E0"
BRAND_ICON_SIZE = 58


def _largest_font(draw: ImageDraw.ImageDraw, text: str, box: int):
    """Return the largest bold font whose rendering of ``text`` fits ``box``."""
    font_size = 120
    font = None
    while font_size > 10:
        try:
            font = ImageFont.truetype("segoeuib.ttf", font_size)
        except OSError:
            return ImageFont.load_default()
        bbox = draw.textbbox((0, 0), text, font=font)
        if bbox[2] - bbox[0] <= box and bbox[3] - bbox[1] <= box:
            break
        font_size -= 1
    return font


def create_icon_image(today: date) -> Image.Image:
    """Return a 64×64 RGBA image: today's day-of-month in white on a promo-orange disc."""
    size = 64
    img = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    draw.ellipse((0, 0, size - 1, size - 1), fill=PROMO_ORANGE)

    text = str(today.day)
    font = _largest_font(draw, text, size - 16)

    # Centre the actual visible pixels (compensate for font metric offsets)
    bbox = draw.textbbox((0, 0), text, font=font)
    x = (size - (bbox[2] - bbox[0])) / 2 - bbox[0]
    y = (size - (bbox[3] - bbox[1])) / 2 - bbox[1]
    draw.text((x, y), text, fill="white", font=font)
    return img


def _circle_mask(size: int) -> Image.Image:
    mask = Image.new("L", (size, size), 0)
    ImageDraw.Draw(mask).ellipse((0, 0, size - 1, size - 1), fill=255)
    return mask


def placeholder_icon(size: int = BRAND_ICON_SIZE) -> Image.Image:
    img = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    ImageDraw.Draw(img).ellipse((0, 0, size - 1, size - 1), fill=PLACEHOLDER_GREY)
    return img


def round_icon(data: bytes, size: int = BRAND_ICON_SIZE) -> Image.Image:
    """Crop downloaded image bytes to a circle of ``size`` pixels.

    Raises ValueError if the bytes are not a readable image.
    """
    try:
        src = Image.open(io.BytesIO(data))
        src.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError(f"Unreadable icon image: {e}") from e
    fitted = ImageOps.fit(src.convert("RGBA"), (size, size))
    img = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    img.paste(fitted, (0, 0), _circle_mask(size))
    return img
