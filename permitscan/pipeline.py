"""主流程：串联分窗、OCR、列定位、行组装、去重、纠正与过滤，逐文档写入存储。"""

from __future__ import annotations

import logging
import random
import sqlite3
import time
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from permitscan import debug_utils
from permitscan import fetch
from permitscan import ocr
from permitscan import store
from permitscan import summary_utils
from permitscan import windowing
from permitscan.columns import locate_columns
from permitscan.context import Column, DocumentResult, ImageResult, Layout, Line, Record, ReferenceData
from permitscan.dedup import deduplicate_rows
from permitscan.pdf_images import iter_pdf_images
from permitscan.record_filter import build_record
from permitscan.rows import assemble_rows

log = logging.getLogger(__name__)


def recognize_image(image: np.ndarray, conf: Dict[str, Any], layout: Layout) -> List[Line]:
    """逐窗口识别整张图片，返回原图坐标下的全部词行。窗口严格串行，每次只占用一个窗口的内存。"""
    lines: List[Line] = []
    ocr_cfg = conf.get("ocr") or {}
    total = windowing.count_bands(image.shape[0], layout)
    for band in windowing.iter_bands(image, layout):
        band_lines = ocr.recognize_band(band, ocr_cfg, layout.scale)
        log.debug("pipeline: 窗口 %d/%d 识别到 %d 行", band.index + 1, total, len(band_lines))
        lines.extend(band_lines)
    return lines


def parse_lines(
    lines: Sequence[Line],
    result: ImageResult,
    reference: ReferenceData,
    conf: Dict[str, Any],
    layout: Layout,
    source_url: str,
    scrape_date: str,
) -> List[Record]:
    """词行 -> 列 -> 行 -> 去重 -> 纠正/过滤。列数不符时该图片不产出记录。"""
    columns = locate_columns(lines, layout)
    if columns is None:
        result.error = "column_count_mismatch"
        return []
    result.columns = [c.x for c in columns]
    result.column_counts = [c.count for c in columns]
    thresholds = conf.get("thresholds") or {}
    rows, rejected = assemble_rows(lines, columns, layout, thresholds)
    result.rows_accepted = len(rows)
    result.rows_rejected = rejected
    merged = deduplicate_rows(rows, layout.line_alignment)
    result.rows_merged = len(merged)
    records: List[Record] = []
    for row in merged:
        record = build_record(row, reference, conf, source_url, scrape_date)
        if record is None:
            result.records_rejected += 1
        else:
            records.append(record)
    return records


def parse_image(
    image: np.ndarray,
    reference: ReferenceData,
    conf: Dict[str, Any],
    source_url: str,
    page_number: int = 1,
    image_index: int = 0,
    scrape_date: Optional[str] = None,
) -> ImageResult:
    """处理一张内嵌图片：去横线 -> 分窗 OCR -> 解析记录。"""
    t0 = time.time()
    layout = Layout.from_config(conf)
    scrape_date = scrape_date or date.today().isoformat()
    h, w = image.shape[:2]
    result = ImageResult(page_number=page_number, image_index=image_index, shape=(h, w))
    log.info("pipeline: 图片 page=%d idx=%d x=[0..%d] y=[0..%d]", page_number, image_index, w - 1, h - 1)

    cleaned = image
    if (conf.get("cleanup") or {}).get("remove_rules", True):
        cleaned = windowing.remove_horizontal_rules(image, layout, conf.get("cleanup"))
    result.bands = windowing.count_bands(h, layout)
    lines = recognize_image(cleaned, conf, layout)
    result.lines = len(lines)
    result.records = parse_lines(lines, result, reference, conf, layout, source_url, scrape_date)

    if (conf.get("run") or {}).get("debug"):
        debug_dir = Path(conf["paths"]["debug_dir"])
        columns = None
        if result.columns is not None:
            columns = [Column(x=x, count=n) for x, n in zip(result.columns, result.column_counts or [])]
        debug_utils.save_debug_image(
            debug_utils.draw_columns(cleaned, columns),
            debug_dir / f"page{page_number:03d}_img{image_index:02d}_columns.png",
        )
    result.elapsed = time.time() - t0
    log.info(
        "pipeline: 图片 page=%d idx=%d 行=%d 记录=%d 用时 %.1fs",
        page_number,
        image_index,
        result.rows_accepted,
        len(result.records),
        result.elapsed,
    )
    return result


def process_pdf(
    pdf_bytes: bytes,
    source_url: str,
    reference: ReferenceData,
    conf: Dict[str, Any],
    conn: Optional[sqlite3.Connection] = None,
) -> DocumentResult:
    """处理单份 PDF 的全部内嵌图片；单张图片失败只记录日志，写库失败向上抛出。"""
    t0 = time.time()
    doc = DocumentResult(source_url=source_url)
    for page_number, image_index, image in iter_pdf_images(pdf_bytes):
        try:
            result = parse_image(image, reference, conf, source_url, page_number, image_index)
        except Exception as e:  # noqa: BLE001
            log.exception("处理图片失败 %s page=%d idx=%d", source_url, page_number, image_index)
            result = ImageResult(
                page_number=page_number,
                image_index=image_index,
                shape=tuple(image.shape[:2]),
                error=str(e),
            )
        finally:
            del image
        doc.images.append(result)
        if conn is not None:
            for record in result.records:
                if store.insert_record(conn, record):
                    doc.inserted += 1
    doc.elapsed = time.time() - t0
    return doc


def _max_documents(conf: Dict[str, Any]) -> int:
    override = (conf.get("run") or {}).get("max_documents")
    if override is not None:
        return int(override)
    return int((conf.get("source") or {}).get("max_documents", 2))


def run(
    conf: Dict[str, Any],
    reference: ReferenceData,
    pdf_paths: Optional[Sequence[str]] = None,
) -> Dict[str, Any]:
    """
    完整运行：本地 PDF 或登记页上挑选的文档 -> 记录 -> SQLite，返回 run_summary。
    """
    t0 = time.time()
    source_cfg = conf.get("source") or {}
    timeout = float(source_cfg.get("timeout", 60))
    conn = store.open_database(conf["paths"]["database"])
    documents: List[DocumentResult] = []
    try:
        if pdf_paths:
            for path in pdf_paths:
                log.info("pipeline: 读取本地文档 %s", path)
                pdf_bytes = Path(path).read_bytes()
                documents.append(process_pdf(pdf_bytes, Path(path).resolve().as_uri(), reference, conf, conn))
        else:
            listing_url = source_cfg["listing_url"]
            html = fetch.fetch_listing(listing_url, timeout=timeout)
            urls = fetch.parse_pdf_links(html, listing_url, source_cfg["link_selector"])
            if not urls:
                log.warning("pipeline: 登记页未找到 PDF 链接")
            rng = random.Random(source_cfg.get("seed"))
            for url in fetch.choose_documents(urls, _max_documents(conf), rng):
                pdf_bytes = fetch.download(url, timeout=timeout)
                documents.append(process_pdf(pdf_bytes, url, reference, conf, conn))
                del pdf_bytes
    finally:
        conn.close()

    layout = Layout.from_config(conf)
    summary = summary_utils.build_summary(
        mode=conf.get("mode", "quality"),
        scale=layout.scale,
        ocr_engine=(conf.get("ocr") or {}).get("engine", "tesseract"),
        documents=documents,
        elapsed_total=time.time() - t0,
    )
    summary_path = Path(conf["paths"]["output_dir"]) / "run_summary.json"
    try:
        summary_utils.save_summary(summary, summary_path)
    except Exception:  # noqa: BLE001
        log.exception("写入 run_summary 失败 %s", summary_path)
    return summary
