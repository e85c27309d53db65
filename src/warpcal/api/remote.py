from __future__ import annotations

import logging
from typing import Any

import requests

from warpcal.errors import RemoteControlError

logger = logging.getLogger(__name__)


def _endpoint(url: str, path: str) -> str:
    return url.rstrip("/") + "/" + path


def post_image(url: str, data: bytes, image_format: str, timeout_s: float = 30.0) -> None:
    """Ask the display controller at `url` to show an encoded image full screen."""
    target = _endpoint(url, "image")
    logger.debug("Posting %d byte %s image to %s", len(data), image_format, target)
    try:
        response = requests.post(
            target,
            data=data,
            headers={"Content-Type": f"image/{image_format}"},
            timeout=timeout_s,
        )
        response.raise_for_status()
    except requests.RequestException as e:
        raise RemoteControlError(f"posting image to {target} failed: {e}") from e


def send_command(url: str, name: str, payload: dict[str, Any], timeout_s: float = 30.0) -> None:
    target = _endpoint(url, "command")
    logger.info("Sending command %s to %s", name, target)
    try:
        response = requests.post(target, json={"command": name, "payload": payload}, timeout=timeout_s)
        response.raise_for_status()
    except requests.RequestException as e:
        raise RemoteControlError(f"command {name} to {target} failed: {e}") from e
