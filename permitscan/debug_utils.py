"""调试与可视化工具：保存去线后的图像并标出定位到的列。"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import cv2
import numpy as np

from permitscan import io_utils
from permitscan.context import Column


def save_debug_image(arr: np.ndarray, path: Path) -> None:
    """保存调试图，保证目录存在。"""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(io_utils.encode_png(arr))


def draw_columns(image: np.ndarray, columns: Sequence[Column] | None) -> np.ndarray:
    """在图像副本上画出各列起点竖线及支持计数。"""
    overlay = np.ascontiguousarray(image[:, :, :3]).copy()
    if not columns:
        return overlay
    h = overlay.shape[0]
    for idx, column in enumerate(columns, start=1):
        x = int(round(column.x))
        cv2.line(overlay, (x, 0), (x, h - 1), (255, 0, 255), 1)
        cv2.putText(
            overlay,
            f"C{idx}:{column.count}",
            (x + 2, 12),
            cv2.FONT_HERSHEY_SIMPLEX,
            0.4,
            (50, 50, 255),
            1,
            cv2.LINE_AA,
        )
    return overlay
