from __future__ import annotations

import io
import logging

from PIL import Image, ImageOps

from .models import ImageUpload

log = logging.getLogger(__name__)

DEFAULT_MAX_WIDTH = 1536
JPEG_QUALITY = 90


def _to_rgb(image: "Image.Image") -> "Image.Image":
    if image.mode == "RGB":
        return image
    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        # JPEG has no alpha channel; flatten onto white.
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.split()[-1])
        return background
    return image.convert("RGB")


def preprocess_image(upload: ImageUpload, max_width: int = DEFAULT_MAX_WIDTH) -> ImageUpload:
    """Shrink *upload* to at most *max_width* pixels wide and re-encode as JPEG."""
    with Image.open(io.BytesIO(upload.data)) as source:
        source.load()
        # Width limits apply to the upright image, not the stored orientation.
        upright = ImageOps.exif_transpose(source)
        width, height = upright.size
        image = upright
        if width > max_width:
            new_height = max(1, round(height * max_width / width))
            image = upright.resize((max_width, new_height), Image.Resampling.LANCZOS)
        image = _to_rgb(image)

        buffer = io.BytesIO()
        image.save(buffer, format="JPEG", quality=JPEG_QUALITY)

    resized = ImageUpload(
        file_name=upload.file_name,
        mime_type="image/jpeg",
        data=buffer.getvalue(),
    )
    log.debug(
        "Resized %s: %.2f KB -> %.2f KB (%sx%s -> %sx%s)",
        upload.file_name,
        upload.size_kb,
        resized.size_kb,
        width,
        height,
        *image.size,
    )
    return resized
