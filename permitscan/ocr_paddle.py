"""PaddleOCR 文本框识别封装：文本框按纵向中心聚成行，每个框视为一个词。"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

import cv2
import numpy as np
from paddleocr import PaddleOCR

log = logging.getLogger(__name__)


def _prepare_image(image: np.ndarray) -> np.ndarray:
    """转换为 BGR，保证符合 PaddleOCR 输入要求。"""
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    # 输入默认为 RGB，转为 BGR
    return cv2.cvtColor(image[:, :, :3], cv2.COLOR_RGB2BGR)


def _box_to_word(box: Sequence[Sequence[float]], text: str, score: float) -> Dict[str, Any]:
    xs = [float(p[0]) for p in box]
    ys = [float(p[1]) for p in box]
    return {
        "text": text,
        "confidence": float(score) * 100.0,
        "choices": 1,
        "bbox": {"x0": min(xs), "y0": min(ys), "x1": max(xs), "y1": max(ys)},
    }


def group_into_lines(words: List[Dict[str, Any]]) -> List[List[Dict[str, Any]]]:
    """纵向中心落在当前行高度一半以内的文本框归为同一行。"""
    lines: List[List[Dict[str, Any]]] = []
    centers: List[float] = []
    for word in sorted(words, key=lambda w: (w["bbox"]["y0"] + w["bbox"]["y1"]) / 2.0):
        bbox = word["bbox"]
        cy = (bbox["y0"] + bbox["y1"]) / 2.0
        half = (bbox["y1"] - bbox["y0"]) / 2.0
        if lines and abs(cy - centers[-1]) <= half:
            lines[-1].append(word)
        else:
            lines.append([word])
            centers.append(cy)
    return [sorted(line, key=lambda w: w["bbox"]["x0"]) for line in lines]


class PaddleEngine:
    """每个窗口一个 PaddleOCR 实例，close 时释放模型。"""

    def __init__(self, ocr_cfg: Dict[str, Any] | None = None) -> None:
        cfg = ocr_cfg or {}
        self.use_angle_cls = bool(cfg.get("use_angle_cls", False))
        lang = cfg.get("lang", "eng")
        self._ocr: PaddleOCR | None = PaddleOCR(
            use_angle_cls=self.use_angle_cls,
            lang="en" if lang == "eng" else lang,
            show_log=False,
        )

    def recognize(self, image: np.ndarray) -> List[List[Dict[str, Any]]]:
        if self._ocr is None:
            raise RuntimeError("PaddleEngine 已关闭")
        result = self._ocr.ocr(_prepare_image(image), cls=self.use_angle_cls)
        items = (result[0] if result else None) or []
        words = [_box_to_word(box, text, score) for box, (text, score) in items if str(text).strip()]
        return group_into_lines(words)

    def close(self) -> None:
        self._ocr = None
