import sys
import unittest
from pathlib import Path
from unittest import mock

import numpy as np


APP_ROOT = Path(__file__).resolve().parents[1]
if str(APP_ROOT) not in sys.path:
    sys.path.insert(0, str(APP_ROOT))


from permitscan import ocr  # noqa: E402
from permitscan.ocr_tesseract import lines_from_data  # noqa: E402
from permitscan.windowing import Band  # noqa: E402


def _raw(text, conf, x0, y0, x1, y1, choices=1):
    return {"text": text, "confidence": conf, "choices": choices, "bbox": {"x0": x0, "y0": y0, "x1": x1, "y1": y1}}


class _ScriptedEngine:
    def __init__(self, lines=None, error=None):
        self.lines = lines or []
        self.error = error
        self.closed = False

    def recognize(self, image):
        if self.error is not None:
            raise self.error
        return self.lines

    def close(self):
        self.closed = True


class TestToImageSpace(unittest.TestCase):
    def test_coordinates_scaled_back_and_offset(self) -> None:
        band = Band(index=3, top=15, height=30, image=None)
        line = ocr.to_image_space([_raw("Vine", 88, 120, 30, 180, 90)], band, scale=6.0)
        self.assertEqual(len(line), 1)
        word = line[0]
        self.assertAlmostEqual(word.x, 20.0)
        self.assertAlmostEqual(word.y, 20.0)
        self.assertAlmostEqual(word.width, 10.0)
        self.assertAlmostEqual(word.height, 10.0)
        self.assertEqual(word.choice_count, 1)

    def test_words_sorted_and_blank_dropped(self) -> None:
        band = Band(index=0, top=0, height=30, image=None)
        line = ocr.to_image_space(
            [_raw("b", 90, 60, 0, 70, 10), _raw("  ", 90, 0, 0, 5, 10), _raw("a", 90, 10, 0, 20, 10)],
            band,
            scale=2.0,
        )
        self.assertEqual([w.text for w in line], ["a", "b"])

    def test_confidence_is_clamped(self) -> None:
        band = Band(index=0, top=0, height=30, image=None)
        line = ocr.to_image_space(
            [_raw("a", 140, 0, 0, 1, 1), _raw("b", -3, 10, 0, 11, 1), _raw("c", float("nan"), 20, 0, 21, 1)],
            band,
            scale=1.0,
        )
        self.assertEqual([w.confidence for w in line], [100.0, 0.0, 0.0])


class TestBandSession(unittest.TestCase):
    def test_engine_closed_after_failure(self) -> None:
        engine = _ScriptedEngine(error=RuntimeError("ocr crashed"))
        band = Band(index=0, top=0, height=30, image=np.zeros((4, 4, 3), dtype=np.uint8))
        with mock.patch("permitscan.ocr.create_engine", return_value=engine):
            with self.assertRaises(RuntimeError):
                ocr.recognize_band(band, {}, scale=1.0)
        self.assertTrue(engine.closed)
        self.assertIsNone(band.image)

    def test_recognize_band_releases_buffer_and_drops_empty_lines(self) -> None:
        engine = _ScriptedEngine(lines=[[_raw("12", 90, 0, 0, 12, 12)], [_raw(" ", 90, 0, 0, 1, 1)]])
        band = Band(index=1, top=5, height=30, image=np.zeros((4, 4, 3), dtype=np.uint8))
        with mock.patch("permitscan.ocr.create_engine", return_value=engine):
            lines = ocr.recognize_band(band, {}, scale=2.0)
        self.assertEqual(len(lines), 1)
        self.assertAlmostEqual(lines[0][0].y, 5.0)
        self.assertTrue(engine.closed)
        self.assertIsNone(band.image)

    def test_memory_is_logged_after_each_band(self) -> None:
        band = Band(index=4, top=20, height=30, image=np.zeros((4, 4, 3), dtype=np.uint8))
        with mock.patch("permitscan.ocr.create_engine", return_value=_ScriptedEngine()):
            with self.assertLogs("permitscan.ocr", level="DEBUG") as captured:
                ocr.recognize_band(band, {}, scale=1.0)
        messages = [m for m in captured.output if "峰值常驻内存" in m]
        self.assertEqual(len(messages), 1)
        self.assertIn("窗口 4", messages[0])
        self.assertGreater(ocr.peak_rss_mb(), 0.0)

    def test_unknown_engine(self) -> None:
        with self.assertRaises(ValueError):
            ocr.create_engine({"engine": "abbyy"})


class TestTesseractData(unittest.TestCase):
    def test_groups_words_by_line(self) -> None:
        data = {
            "page_num": [1, 1, 1, 1, 1],
            "block_num": [1, 1, 1, 1, 1],
            "par_num": [1, 1, 1, 1, 1],
            "line_num": [0, 1, 1, 2, 2],
            "text": ["", "1/05/2018", "077/586/2018", "Dwelling", "  "],
            "conf": ["-1", "91.5", 88, "77", "60"],
            "left": [0, 10, 100, 10, 40],
            "top": [0, 5, 6, 30, 31],
            "width": [0, 50, 60, 40, 5],
            "height": [0, 12, 12, 12, 12],
        }
        lines = lines_from_data(data)
        self.assertEqual([[w["text"] for w in line] for line in lines], [["1/05/2018", "077/586/2018"], ["Dwelling"]])
        first = lines[0][0]
        self.assertEqual(first["confidence"], 91.5)
        self.assertEqual(first["bbox"], {"x0": 10, "y0": 5, "x1": 60, "y1": 17})


if __name__ == "__main__":
    unittest.main()
