import io
import random

import pytest
from PIL import Image


def _image_bytes(width: int, height: int, fmt: str = "PNG", seed: int = 0) -> bytes:
    # Noise does not compress, so the encoded size grows with the pixel count.
    rng = random.Random(seed)
    pixels = bytes(rng.getrandbits(8) for _ in range(width * height * 3))
    img = Image.frombytes("RGB", (width, height), pixels)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def image_bytes():
    return _image_bytes
