"""Tesseract 词级识别封装（pytesseract image_to_data）。"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple

import numpy as np
import pytesseract
from PIL import Image

log = logging.getLogger(__name__)


def _to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return -1.0


def lines_from_data(data: Dict[str, List[Any]]) -> List[List[Dict[str, Any]]]:
    """
    将 image_to_data 的 DICT 输出按 block/paragraph/line 分组为行。
    空文本与 conf<0 的非词条目被丢弃；tesseract 的 TSV 不提供候选数，记为 1。
    """
    lines: Dict[Tuple[int, int, int, int], List[Dict[str, Any]]] = {}
    n = len(data.get("text", []))
    for i in range(n):
        text = (data["text"][i] or "").strip()
        conf = _to_float(data["conf"][i])
        if not text or conf < 0:
            continue
        key = (
            int(data.get("page_num", [1] * n)[i]),
            int(data["block_num"][i]),
            int(data["par_num"][i]),
            int(data["line_num"][i]),
        )
        x0, y0 = int(data["left"][i]), int(data["top"][i])
        lines.setdefault(key, []).append(
            {
                "text": text,
                "confidence": conf,
                "choices": 1,
                "bbox": {"x0": x0, "y0": y0, "x1": x0 + int(data["width"][i]), "y1": y0 + int(data["height"][i])},
            }
        )
    return list(lines.values())


class TesseractEngine:
    """每个窗口新建一个实例；tesseract 以子进程运行，没有常驻会话。"""

    def __init__(self, ocr_cfg: Dict[str, Any] | None = None) -> None:
        cfg = ocr_cfg or {}
        self.lang = cfg.get("lang", "eng")
        self.config = f"--psm {int(cfg.get('psm', 6))}"

    def recognize(self, image: np.ndarray) -> List[List[Dict[str, Any]]]:
        data = pytesseract.image_to_data(
            Image.fromarray(image),
            lang=self.lang,
            config=self.config,
            output_type=pytesseract.Output.DICT,
        )
        return lines_from_data(data)

    def close(self) -> None:
        return None
