"""Image helpers."""

from __future__ import annotations

import base64
import os


def encode_image_file(path: str | os.PathLike[str]) -> str:
    """Read an image file and return it base64-encoded, ready for ``Message.images``.

    The bytes are not inspected; messages always declare ``image/jpeg``.
    """
    with open(path, "rb") as f:
        return base64.b64encode(f.read()).decode("ascii")
