"""summary 构建与 JSON 序列化工具。"""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List

import numpy as np

from permitscan.context import DocumentResult


def json_default(obj):
    """兼容 numpy 标量的 JSON 序列化。"""
    if isinstance(obj, (np.bool_,)):
        return bool(obj)
    if isinstance(obj, (np.integer,)):
        return int(obj)
    if isinstance(obj, (np.floating,)):
        return float(obj)
    return str(obj)


def save_summary(summary: Dict[str, Any], path: Path) -> None:
    """保存 run_summary.json，保证目录存在。"""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(summary, ensure_ascii=False, indent=2, default=json_default), encoding="utf-8")


def _document_to_dict(doc: DocumentResult) -> Dict[str, Any]:
    data = asdict(doc)
    for image in data["images"]:
        image["records"] = [r["record_number"] for r in image["records"]]
    return data


def build_summary(
    mode: str,
    scale: float,
    ocr_engine: str,
    documents: List[DocumentResult],
    elapsed_total: float,
) -> Dict[str, Any]:
    """构建 run_summary 字典，集中管理字段。"""
    images = [img for doc in documents for img in doc.images]
    return {
        "mode": mode,
        "scale": scale,
        "ocr_engine": ocr_engine,
        "documents": [_document_to_dict(doc) for doc in documents],
        "totals": {
            "documents": len(documents),
            "images": len(images),
            "images_failed": sum(1 for img in images if img.error),
            "rows_accepted": sum(img.rows_accepted for img in images),
            "rows_rejected": sum(img.rows_rejected for img in images),
            "records": sum(len(img.records) for img in images),
            "records_rejected": sum(img.records_rejected for img in images),
            "inserted": sum(doc.inserted for doc in documents),
        },
        "elapsed_total": elapsed_total,
    }
