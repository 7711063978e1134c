"""
Test: Answer sheet photo validation and JPEG normalisation.
"""
import io

import pytest
from PIL import Image

from essay_tutor.core.config import settings
from essay_tutor.core.errors import ValidationError
from essay_tutor.services.image_service import prepare_answer_image


def _encode(fmt, size=(200, 300), mode="RGB"):
    buffer = io.BytesIO()
    Image.new(mode, size, color="white").save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.mark.asyncio
async def test_jpeg_passes_through(jpeg_bytes):
    assert await prepare_answer_image(jpeg_bytes, "answer.jpg") == jpeg_bytes


@pytest.mark.asyncio
async def test_png_converted_to_jpeg():
    result = await prepare_answer_image(_encode("PNG", mode="RGBA"), "answer.png")
    with Image.open(io.BytesIO(result)) as image:
        assert image.format == "JPEG"
        assert image.size == (200, 300)


@pytest.mark.asyncio
async def test_empty_upload_rejected():
    with pytest.raises(ValidationError, match="empty"):
        await prepare_answer_image(b"", "answer.jpg")


@pytest.mark.asyncio
async def test_tiny_image_rejected():
    with pytest.raises(ValidationError, match="too small"):
        await prepare_answer_image(_encode("PNG", size=(20, 20)), "answer.png")


@pytest.mark.asyncio
async def test_garbage_rejected():
    with pytest.raises(ValidationError, match="valid image"):
        await prepare_answer_image(b"definitely not an image", "answer.jpg")


@pytest.mark.asyncio
async def test_wrong_extension_rejected(jpeg_bytes):
    with pytest.raises(ValidationError, match="Unsupported format"):
        await prepare_answer_image(jpeg_bytes, "answer.pdf")


@pytest.mark.asyncio
async def test_oversized_upload_rejected(monkeypatch, jpeg_bytes):
    monkeypatch.setattr(settings, "MAX_IMAGE_SIZE_MB", 0)
    with pytest.raises(ValidationError, match="too large"):
        await prepare_answer_image(jpeg_bytes, "answer.jpg")


@pytest.mark.asyncio
async def test_pixel_ceiling_rejected(monkeypatch):
    monkeypatch.setattr(settings, "MAX_IMAGE_PIXELS", 1000)
    with pytest.raises(ValidationError, match="dimensions too large"):
        await prepare_answer_image(_encode("PNG"), "answer.png")


@pytest.mark.asyncio
async def test_decompression_bomb_rejected(monkeypatch):
    # Pillow refuses to open anything over twice its own pixel limit.
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)
    with pytest.raises(ValidationError, match="dimensions too large"):
        await prepare_answer_image(_encode("PNG"), "answer.png")


@pytest.mark.asyncio
async def test_truncated_jpeg_rejected():
    data = _encode("JPEG", size=(400, 400))
    with pytest.raises(ValidationError, match="valid image"):
        await prepare_answer_image(data[: len(data) // 2], "answer.jpg")
