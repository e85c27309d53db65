from __future__ import annotations

import io
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from warpcal.errors import CaptureError


def _png_bytes(arr: np.ndarray) -> bytes:
    buf = io.BytesIO()
    Image.fromarray(arr).save(buf, format="PNG")
    return buf.getvalue()


def test_decode_photo_returns_bgr() -> None:
    pytest.importorskip("cv2")
    from warpcal.core.image_io import decode_photo

    rgb = np.zeros((6, 8, 3), dtype=np.uint8)
    rgb[..., 0] = 200  # red
    img = decode_photo(_png_bytes(rgb))
    assert img.shape == (6, 8, 3)
    assert img.dtype == np.uint8
    assert np.all(img[..., 2] == 200)
    assert np.all(img[..., 0] == 0)


def test_decode_photo_rejects_garbage() -> None:
    pytest.importorskip("cv2")
    from warpcal.core.image_io import decode_photo

    with pytest.raises(CaptureError):
        decode_photo(b"definitely not an image")


def test_write_image_png(tmp_path: Path) -> None:
    pytest.importorskip("cv2")
    from warpcal.core.image_io import write_image

    arr = (np.arange(64, dtype=np.uint8).reshape(8, 8) * 4) % 255
    p = write_image(tmp_path / "a.png", arr)
    with Image.open(p) as im:
        assert im.size == (8, 8)
        assert np.array_equal(np.asarray(im.convert("L")), arr)
