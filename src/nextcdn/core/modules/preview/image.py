"""Image resizing for remote image previews."""

from io import BytesIO

from PIL import Image
from pillow_heif import register_heif_opener  # type: ignore[import-untyped]

register_heif_opener()


def calculate_dimensions(
    original_width: int, original_height: int, width: int | None, height: int | None
) -> tuple[int, int]:
    """Work out the target size.

    Both dimensions given: used as-is. One given: the other follows the
    original aspect ratio, rounded, never below 1. None given: original size.
    """
    if width is not None and height is not None:
        return width, height
    if width is not None:
        return width, max(1, round(width * original_height / original_width))
    if height is not None:
        return max(1, round(height * original_width / original_height)), height
    return original_width, original_height


def resize_image(data: bytes, width: int | None, height: int | None) -> bytes:
    """Resize encoded image bytes with Lanczos resampling and re-encode as PNG.

    Raises:
        OSError: If the image cannot be decoded or encoded
        DecompressionBombError: If the image exceeds Pillow's pixel limit
    """
    with Image.open(BytesIO(data)) as img:
        target = calculate_dimensions(img.width, img.height, width, height)
        resized = img.resize(target, Image.Resampling.LANCZOS)
        if resized.mode == "CMYK":
            resized = resized.convert("RGB")

    output = BytesIO()
    resized.save(output, format="PNG")
    return output.getvalue()
