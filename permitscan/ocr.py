"""OCR 适配层：按窗口创建/释放引擎会话，并把结果换算回原图坐标。"""

from __future__ import annotations

import gc
import logging
import resource
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List

from permitscan.context import Line, Word
from permitscan.windowing import Band

log = logging.getLogger(__name__)


def create_engine(ocr_cfg: Dict[str, Any]):
    """按配置创建引擎；引擎模块延迟导入，未使用的后端无需安装。"""
    engine = (ocr_cfg.get("engine") or "tesseract").lower()
    if engine == "tesseract":
        from permitscan.ocr_tesseract import TesseractEngine

        return TesseractEngine(ocr_cfg)
    if engine == "paddle":
        from permitscan.ocr_paddle import PaddleEngine

        return PaddleEngine(ocr_cfg)
    raise ValueError(f"未知 OCR 引擎：{engine}")


@contextmanager
def band_session(ocr_cfg: Dict[str, Any]) -> Iterator[Any]:
    """单个窗口的引擎会话，任何退出路径都会关闭引擎并回收内存。"""
    engine = create_engine(ocr_cfg)
    try:
        yield engine
    finally:
        engine.close()
        del engine
        gc.collect()


def peak_rss_mb() -> float:
    """进程峰值常驻内存（MB）；Linux 下 ru_maxrss 单位为 KB。"""
    return resource.getrusage(resource.RUSAGE_SELF).ru_maxrss / 1024.0


def _clamp_confidence(value: Any) -> float:
    try:
        conf = float(value)
    except (TypeError, ValueError):
        return 0.0
    if conf != conf:  # NaN
        return 0.0
    return min(100.0, max(0.0, conf))


def to_image_space(raw_line: List[Dict[str, Any]], band: Band, scale: float) -> Line:
    """窗口内放大坐标 -> 原图坐标：除以放大倍数并加上窗口顶部偏移。"""
    words: Line = []
    for raw in raw_line:
        text = str(raw.get("text") or "").strip()
        if not text:
            continue
        bbox = raw["bbox"]
        x0, y0 = float(bbox["x0"]) / scale, float(bbox["y0"]) / scale
        x1, y1 = float(bbox["x1"]) / scale, float(bbox["y1"]) / scale
        words.append(
            Word(
                text=text,
                confidence=_clamp_confidence(raw.get("confidence")),
                choice_count=int(raw.get("choices") or 0),
                x=x0,
                y=y0 + band.top,
                width=max(0.0, x1 - x0),
                height=max(0.0, y1 - y0),
            )
        )
    words.sort(key=lambda w: w.x)
    return words


def recognize_band(band: Band, ocr_cfg: Dict[str, Any], scale: float) -> List[Line]:
    """识别单个窗口；识别完成后立即释放窗口像素与引擎会话。"""
    try:
        with band_session(ocr_cfg) as engine:
            raw_lines = engine.recognize(band.image)
    finally:
        band.release()
        log.debug("ocr: 窗口 %d 已释放，峰值常驻内存 %.1f MB", band.index, peak_rss_mb())
    lines = [to_image_space(raw_line, band, scale) for raw_line in raw_lines]
    return [line for line in lines if line]
