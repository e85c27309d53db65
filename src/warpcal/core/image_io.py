from __future__ import annotations

import io
from pathlib import Path

import numpy as np
from PIL import Image

from warpcal.errors import CaptureError


def decode_photo(data: bytes) -> np.ndarray:
    """
    Decode photo bytes into a BGR uint8 image (H,W,3).

    Primary backend is OpenCV. Pillow is used as a fallback for formats the
    OpenCV build cannot decode.
    """
    import cv2  # type: ignore

    buf = np.frombuffer(data, dtype=np.uint8)
    img = cv2.imdecode(buf, cv2.IMREAD_COLOR) if buf.size else None
    if img is not None:
        return img

    try:
        with Image.open(io.BytesIO(data)) as im:
            rgb = np.asarray(im.convert("RGB"), dtype=np.uint8)
    except (OSError, ValueError) as e:
        raise CaptureError(f"photo could not be decoded ({len(data)} bytes)") from e
    return np.ascontiguousarray(rgb[:, :, ::-1])


def encode_image(img: np.ndarray, ext: str = ".png") -> bytes:
    import cv2  # type: ignore

    ok, buf = cv2.imencode(ext, img)
    if not ok:
        raise RuntimeError(f"OpenCV could not encode image as {ext}")
    return buf.tobytes()


def write_image(path: str | Path, img: np.ndarray) -> Path:
    p = Path(path)
    p.write_bytes(encode_image(img, p.suffix or ".png"))
    return p
