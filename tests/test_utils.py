import numpy as np
import pytest

from liptint.types import PixelBuffer
from liptint.utils import is_image_file, mirror_path


def test_is_image_file():
    assert is_image_file("face.JPG")
    assert not is_image_file("notes.txt")
    assert is_image_file("x.gif", exts={".GIF"})


def test_mirror_path(tmp_path):
    src = tmp_path / "in" / "a" / "face.png"
    assert mirror_path(src, tmp_path / "in", tmp_path / "out") == tmp_path / "out" / "a" / "face.png"
    assert mirror_path(src, tmp_path / "elsewhere", tmp_path / "out") == tmp_path / "out" / "face.png"
    assert mirror_path(src, None, tmp_path / "out") == tmp_path / "out" / "face.png"


def test_pixel_buffer_shares_memory():
    rgba = np.zeros((2, 3, 4), dtype=np.uint8)
    buf = PixelBuffer.from_rgba(rgba)
    buf.data[0] = 9
    assert rgba[0, 0, 0] == 9
    assert buf.as_array().shape == (2, 3, 4)


def test_pixel_buffer_size_checked():
    with pytest.raises(ValueError):
        PixelBuffer(2, 2, np.zeros(15, dtype=np.uint8))
    with pytest.raises(ValueError):
        PixelBuffer.from_rgba(np.zeros((2, 2, 3), dtype=np.uint8))


def test_pixel_buffer_copy_is_independent():
    buf = PixelBuffer.filled(2, 2, (1, 2, 3, 4))
    dup = buf.copy()
    dup.data[:] = 0
    assert tuple(buf.as_array()[1, 1]) == (1, 2, 3, 4)
