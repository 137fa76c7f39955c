"""图片分窗：去除横向表格线，按重叠窗口切片并放大，逐个交给 OCR。"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional

import cv2
import numpy as np

from permitscan.context import Layout

log = logging.getLogger(__name__)


@dataclass
class Band:
    """一个横向窗口：top/height 为原图坐标，image 为放大后的像素。"""

    index: int
    top: int
    height: int
    image: Optional[np.ndarray]

    def release(self) -> None:
        self.image = None


def _dark_mask(image: np.ndarray, dark_threshold: int, alpha_threshold: int) -> np.ndarray:
    dark = (image[:, :, :3] < dark_threshold).all(axis=2)
    if image.shape[2] == 4:
        dark &= image[:, :, 3] >= alpha_threshold
    return dark


def _dominant_color(row: np.ndarray) -> np.ndarray:
    """一行像素中出现次数最多的颜色。"""
    colors, counts = np.unique(row.reshape(-1, row.shape[-1]), axis=0, return_counts=True)
    return colors[int(np.argmax(counts))]


def remove_horizontal_rules(
    image: np.ndarray, layout: Layout, cleanup_cfg: Dict[str, Any] | None = None
) -> np.ndarray:
    """
    去除横向黑线（会干扰 g/j/p/q/y 等下伸字母的识别）。
    暗像素数超过 W - 2*column_gap 的行整行改写为上一行最常见的颜色。
    自上而下处理，上一行按清理后的像素取色，而不是它改写前的像素：
    多行粗线的第二行起取到的是线上方的底色，整段线都被抹掉。
    """
    cfg = cleanup_cfg or {}
    dark_threshold = int(cfg.get("dark_threshold", 64))
    alpha_threshold = int(cfg.get("alpha_threshold", 196))
    out = image.copy()
    h, w = out.shape[:2]
    dark_counts = _dark_mask(out, dark_threshold, alpha_threshold).sum(axis=1)
    limit = w - 2 * layout.column_gap
    removed = 0
    for y in np.nonzero(dark_counts > limit)[0]:
        if y == 0:
            continue
        out[y] = _dominant_color(out[y - 1])
        removed += 1
    if removed:
        log.info("windowing: 去除横线 %d 行 (图像 %dx%d)", removed, w, h)
    return out


def iter_bands(image: np.ndarray, layout: Layout) -> Iterator[Band]:
    """
    按 section_step 步进生成重叠窗口，每次只持有一个放大后的窗口。
    放大结果直接交给 Band，生成器帧内不保留引用，release() 后即可回收。
    """
    h, w = image.shape[:2]
    width = max(1, int(round(w * layout.scale)))
    for index, top in enumerate(range(0, h, layout.section_step)):
        height = min(h - top, layout.section_height)
        log.debug("windowing: 窗口 %d y=[%d..%d] / [0..%d]", index, top, top + height - 1, h - 1)
        yield Band(
            index=index,
            top=top,
            height=height,
            image=cv2.resize(
                image[top : top + height],
                (width, max(1, int(round(height * layout.scale)))),
                interpolation=cv2.INTER_CUBIC,
            ),
        )


def count_bands(image_height: int, layout: Layout) -> int:
    if image_height <= 0:
        return 0
    return (image_height - 1) // layout.section_step + 1
