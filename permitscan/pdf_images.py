"""PDF 内嵌图片提取（PyMuPDF），逐张产出 RGB 数组。"""

from __future__ import annotations

import logging
from typing import Iterator, Tuple

import fitz  # PyMuPDF
import numpy as np

log = logging.getLogger(__name__)


def _pixmap_to_rgb(pix: "fitz.Pixmap") -> np.ndarray | None:
    """去掉 alpha 并转换到 RGB；无色彩空间的蒙版图返回 None。"""
    if pix.alpha:
        pix = fitz.Pixmap(pix, 0)
    if pix.colorspace is None:
        return None
    if pix.colorspace.n != 3:
        pix = fitz.Pixmap(fitz.csRGB, pix)
    arr = np.frombuffer(pix.samples, dtype=np.uint8).reshape(pix.height, pix.width, pix.n)
    return arr.copy()


def iter_pdf_images(pdf_bytes: bytes) -> Iterator[Tuple[int, int, np.ndarray]]:
    """按页产出 (页码, 页内序号, RGB 图像)；同一 xref 在一页中只处理一次。"""
    with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
        log.info("pdf_images: 共 %d 页", doc.page_count)
        for page in doc:
            page_number = page.number + 1
            seen = set()
            for image_index, img in enumerate(page.get_images(full=True)):
                xref = img[0]
                if xref in seen:
                    continue
                seen.add(xref)
                rgb = _pixmap_to_rgb(fitz.Pixmap(doc, xref))
                if rgb is None:
                    log.debug("pdf_images: 跳过蒙版图 page=%d xref=%d", page_number, xref)
                    continue
                yield page_number, image_index, rgb
