"""
Unit tests for image preprocessing.
"""

import io

import numpy as np
import pytest
from PIL import Image

from image_preprocessor import InvalidImage, load_image, preprocess_image


def _pixel(rgb):
    return np.array([[rgb]], dtype=np.uint8)


class TestPreprocessImage:

    @pytest.mark.parametrize("rgb, expected", [
        ((128, 128, 128), 255),   # threshold itself is white
        ((127, 127, 127), 0),
        ((255, 0, 0), 0),         # luminance 76
        ((0, 255, 0), 255),       # luminance 150
        ((0, 0, 255), 0),         # luminance 29
        ((255, 255, 255), 255),
        ((0, 0, 0), 0),
    ])
    def test_luminance_threshold(self, rgb, expected):
        result = preprocess_image(_pixel(rgb))
        assert np.asarray(result)[0, 0] == expected

    def test_output_is_binary_grayscale(self, logbook_photo):
        result = preprocess_image(logbook_photo)

        assert result.mode == "L"
        assert result.size == (30, 20)
        assert set(np.unique(np.asarray(result))) <= {0, 255}
        assert np.asarray(result)[6, 10] == 0      # ink
        assert np.asarray(result)[0, 0] == 255     # paper

    def test_deterministic(self, logbook_photo):
        first = np.asarray(preprocess_image(logbook_photo))
        second = np.asarray(preprocess_image(logbook_photo))
        assert np.array_equal(first, second)

    def test_alpha_channel_ignored(self):
        rgba = np.array([[[200, 200, 200, 0]]], dtype=np.uint8)
        assert np.asarray(preprocess_image(rgba))[0, 0] == 255

    def test_grayscale_array(self):
        gray = np.array([[10, 200]], dtype=np.uint8)
        assert np.asarray(preprocess_image(gray)).tolist() == [[0, 255]]

    def test_pil_image(self):
        image = Image.new("RGB", (4, 3), (250, 250, 250))
        result = preprocess_image(image)
        assert result.size == (4, 3)

    def test_png_bytes(self):
        buffer = io.BytesIO()
        Image.new("RGB", (2, 2), (10, 10, 10)).save(buffer, format="PNG")
        result = preprocess_image(buffer.getvalue())
        assert np.asarray(result).max() == 0

    @pytest.mark.parametrize("shape", [(0, 10, 3), (10, 0, 3), (0, 0)])
    def test_zero_dimension_rejected(self, shape):
        with pytest.raises(InvalidImage):
            preprocess_image(np.zeros(shape, dtype=np.uint8))

    def test_garbage_bytes_rejected(self):
        with pytest.raises(InvalidImage):
            preprocess_image(b"not an image")

    def test_unsupported_source_rejected(self):
        with pytest.raises(InvalidImage):
            preprocess_image(12345)


class TestLoadImage:

    def test_loads_png(self, tmp_path):
        path = tmp_path / "page.png"
        Image.new("RGB", (5, 5), (255, 255, 255)).save(path)
        assert load_image(path).size == (5, 5)

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "page.gif"
        Image.new("RGB", (5, 5)).save(path)
        with pytest.raises(InvalidImage, match="Unsupported"):
            load_image(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(InvalidImage, match="not found"):
            load_image(tmp_path / "missing.jpg")

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "page.jpg"
        path.write_bytes(b"garbage")
        with pytest.raises(InvalidImage):
            load_image(path)
