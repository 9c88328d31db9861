import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from apex.core.buffer import PixelBuffer  # noqa: E402


@pytest.fixture
def gradient_buffer() -> PixelBuffer:
    """A 37x23 buffer with distinct colours and a varying alpha channel."""

    height, width = 23, 37
    ys, xs = np.indices((height, width))
    pixels = np.empty((height, width, 4), dtype=np.uint8)
    pixels[..., 0] = (xs * 7) % 256
    pixels[..., 1] = (ys * 11) % 256
    pixels[..., 2] = (xs * 3 + ys * 5) % 256
    pixels[..., 3] = (xs + ys * 2) % 256
    return PixelBuffer.from_array(pixels)
