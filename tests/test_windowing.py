import gc
import sys
import unittest
import weakref
from pathlib import Path
from unittest import mock

import numpy as np


APP_ROOT = Path(__file__).resolve().parents[1]
if str(APP_ROOT) not in sys.path:
    sys.path.insert(0, str(APP_ROOT))


from permitscan import ocr  # noqa: E402
from permitscan.context import Layout  # noqa: E402
from permitscan.windowing import count_bands, iter_bands, remove_horizontal_rules  # noqa: E402

WHITE = np.array([255, 255, 255], dtype=np.uint8)


class _EmptyEngine:
    """不保留输入图像的空引擎。"""

    def recognize(self, image):
        return []

    def close(self):
        return None


class TestRemoveHorizontalRules(unittest.TestCase):
    def setUp(self) -> None:
        self.layout = Layout()  # column_gap=45：宽 200 时暗像素需超过 110
        self.image = np.full((20, 200, 3), 255, dtype=np.uint8)

    def test_full_width_rule_is_replaced_with_previous_row_color(self) -> None:
        self.image[10] = 0
        cleaned = remove_horizontal_rules(self.image, self.layout)
        self.assertTrue((cleaned[10] == WHITE).all())
        # 原图不被修改
        self.assertTrue((self.image[10] == 0).all())

    def test_thick_rule_is_fully_removed(self) -> None:
        self.image[10:13] = 0
        cleaned = remove_horizontal_rules(self.image, self.layout)
        self.assertTrue((cleaned[10:13] == WHITE).all())

    def test_thick_rule_takes_color_from_above_the_rule(self) -> None:
        self.image[:10] = 200
        self.image[10:13] = 0
        cleaned = remove_horizontal_rules(self.image, self.layout)
        # 第二、三行取的是已改写的上一行，而不是线本身的黑色
        self.assertTrue((cleaned[10:13] == 200).all())
        self.assertTrue((cleaned[13:] == WHITE).all())

    def test_uses_most_frequent_color_of_previous_row(self) -> None:
        self.image[9] = 200
        self.image[9, :30] = 255
        self.image[10] = 0
        cleaned = remove_horizontal_rules(self.image, self.layout)
        self.assertTrue((cleaned[10] == 200).all())

    def test_text_row_is_kept(self) -> None:
        self.image[10, 20:120:2] = 0  # 50 个暗像素，像文字笔画
        cleaned = remove_horizontal_rules(self.image, self.layout)
        np.testing.assert_array_equal(cleaned, self.image)

    def test_first_row_has_no_predecessor(self) -> None:
        self.image[0] = 0
        cleaned = remove_horizontal_rules(self.image, self.layout)
        self.assertTrue((cleaned[0] == 0).all())

    def test_transparent_dark_pixels_are_not_counted(self) -> None:
        rgba = np.full((20, 200, 4), 255, dtype=np.uint8)
        rgba[10, :, :3] = 0
        rgba[10, :, 3] = 50
        cleaned = remove_horizontal_rules(rgba, self.layout)
        np.testing.assert_array_equal(cleaned, rgba)


class TestIterBands(unittest.TestCase):
    def test_bands_overlap_and_are_upscaled(self) -> None:
        layout = Layout(section_height=12, section_step=5, scale=2.0)
        image = np.full((20, 40, 3), 255, dtype=np.uint8)
        bands = []
        for band in iter_bands(image, layout):
            bands.append((band.index, band.top, band.height, band.image.shape))
        self.assertEqual(
            bands,
            [
                (0, 0, 12, (24, 80, 3)),
                (1, 5, 12, (24, 80, 3)),
                (2, 10, 10, (20, 80, 3)),
                (3, 15, 5, (10, 80, 3)),
            ],
        )
        self.assertEqual(count_bands(20, layout), 4)

    def test_band_content_matches_crop(self) -> None:
        layout = Layout(section_height=4, section_step=4, scale=1.0)
        image = np.zeros((8, 6, 3), dtype=np.uint8)
        image[4:] = 255
        bands = list(iter_bands(image, layout))
        self.assertEqual(len(bands), 2)
        self.assertTrue((bands[0].image == 0).all())
        self.assertTrue((bands[1].image == 255).all())

    def test_released_buffer_is_freed_before_next_band(self) -> None:
        image = np.full((40, 50, 3), 255, dtype=np.uint8)
        bands = iter_bands(image, Layout(scale=4.0))
        band = next(bands)
        buffer_ref = weakref.ref(band.image)
        with mock.patch("permitscan.ocr.create_engine", return_value=_EmptyEngine()):
            ocr.recognize_band(band, {}, 4.0)
        gc.collect()
        self.assertIsNone(band.image)
        # 生成器尚未推进到下一个窗口，放大后的缓冲区也必须已被回收
        self.assertIsNone(buffer_ref())
        bands.close()

    def test_empty_image_has_no_bands(self) -> None:
        self.assertEqual(count_bands(0, Layout()), 0)
        self.assertEqual(list(iter_bands(np.zeros((0, 10, 3), dtype=np.uint8), Layout())), [])


if __name__ == "__main__":
    unittest.main()
