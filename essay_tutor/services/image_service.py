import io
import logging
import asyncio

from PIL import Image, UnidentifiedImageError

from essay_tutor.core.config import settings
from essay_tutor.core.errors import ValidationError

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".webp", ".bmp")
MIN_DIMENSION = 50
JPEG_QUALITY = 90


async def prepare_answer_image(content: bytes, filename: str) -> bytes:
    """
    Validate a photographed answer sheet and re-encode it as JPEG.
    The grading request always declares image/jpeg, so PNG/WEBP uploads are
    converted here. Raises ValidationError for anything unusable.
    """
    filename = (filename or "").lower()

    if len(content) == 0:
        raise ValidationError("Uploaded image is empty.")

    max_bytes = settings.MAX_IMAGE_SIZE_MB * 1024 * 1024
    if len(content) > max_bytes:
        raise ValidationError(
            f"Image too large ({len(content) / (1024*1024):.1f} MB). "
            f"Maximum is {settings.MAX_IMAGE_SIZE_MB} MB."
        )

    if filename and not filename.endswith(IMAGE_EXTENSIONS):
        raise ValidationError("Unsupported format. Use PNG, JPG, JPEG, WEBP or BMP.")

    return await asyncio.to_thread(_to_jpeg, content)


def _to_jpeg(data: bytes) -> bytes:
    try:
        with Image.open(io.BytesIO(data)) as image:
            w, h = image.size
            if w < MIN_DIMENSION or h < MIN_DIMENSION:
                raise ValidationError("Image too small to contain readable text.")
            if w * h > settings.MAX_IMAGE_PIXELS:
                raise ValidationError(
                    f"Image dimensions too large ({w}x{h}). "
                    f"Maximum is {settings.MAX_IMAGE_PIXELS} pixels."
                )

            # Decode fully so truncated files fail here, not at the provider.
            image.load()
            if image.format == "JPEG" and image.mode == "RGB":
                return data

            buffer = io.BytesIO()
            image.convert("RGB").save(buffer, format="JPEG", quality=JPEG_QUALITY)
    except ValidationError:
        raise
    except Image.DecompressionBombError as e:
        raise ValidationError(f"Image dimensions too large: {e}") from e
    except (UnidentifiedImageError, OSError) as e:
        raise ValidationError(f"File does not appear to be a valid image: {e}") from e
    except Exception as e:
        logger.error(f"[IMAGE] Processing failed: {e}")
        raise ValidationError(f"Image processing failed: {e}") from e

    logger.info(f"[IMAGE] Re-encoded {w}x{h} upload as JPEG")
    return buffer.getvalue()
