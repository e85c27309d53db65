from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import requests

from warpcal.errors import CaptureError, ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageFileSource:
    path: Path


@dataclass(frozen=True)
class HttpCameraSource:
    url: str
    timeout_s: float = 60.0


@dataclass(frozen=True)
class TetheredCameraSource:
    """Camera on USB, driven through the gphoto2 command line."""

    command: tuple[str, ...] = ("gphoto2", "--capture-image-and-download", "--stdout")


PhotoSource = Union[ImageFileSource, HttpCameraSource, TetheredCameraSource]


def photo_source_from_arg(arg: str | None) -> PhotoSource:
    """
    `None` -> tethered camera, `http...` -> remote HTTP camera, anything else -> image file.
    """
    if arg is None:
        return TetheredCameraSource()
    if arg.startswith("http"):
        return HttpCameraSource(url=arg)
    path = Path(arg)
    if not path.is_file():
        raise ConfigurationError(f"Missing image file {path}")
    return ImageFileSource(path=path)


def capture_photo(source: PhotoSource) -> bytes:
    """Return the encoded photo bytes produced by `source`."""
    if isinstance(source, ImageFileSource):
        logger.info("Reading photo from %s", source.path)
        try:
            return Path(source.path).read_bytes()
        except OSError as e:
            raise ConfigurationError(f"cannot read image file {source.path}: {e}") from e

    if isinstance(source, HttpCameraSource):
        logger.info("Requesting photo from %s", source.url)
        try:
            response = requests.get(source.url, timeout=source.timeout_s)
            response.raise_for_status()
        except requests.RequestException as e:
            raise CaptureError(f"remote camera request failed: {e}") from e
        return response.content

    if isinstance(source, TetheredCameraSource):
        logger.info("Triggering tethered camera: %s", " ".join(source.command))
        try:
            proc = subprocess.run(list(source.command), check=True, capture_output=True)
        except (OSError, subprocess.CalledProcessError) as e:
            raise CaptureError(f"tethered capture failed: {e}") from e
        if not proc.stdout:
            raise CaptureError("tethered capture returned no image data")
        return proc.stdout

    raise TypeError(f"unsupported photo source: {type(source).__name__}")
