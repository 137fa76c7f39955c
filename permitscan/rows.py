"""行组装：把一行词按列归入单元格，并在组装后立即做行级过滤。"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from permitscan.context import (
    FIELD_SEPARATOR,
    RECEIVED_DATE,
    RECORD_NUMBER,
    Cell,
    Column,
    Layout,
    Line,
    Row,
)

log = logging.getLogger(__name__)


def assemble_row(line: Line, columns: Sequence[Column], layout: Layout) -> Row:
    """
    逐词推进“当前列”指针：词的 x 与某列对齐时切换到该列，并记录该列首个对齐词的 y。
    单元格置信度为所含词置信度的算术平均，空单元格为 0。
    """
    cells = [Cell() for _ in columns]
    confidences: List[List[float]] = [[] for _ in columns]
    current = 0
    for word in line:
        for index, column in enumerate(columns):
            if abs(word.x - column.x) < layout.column_alignment:
                current = index
                if cells[index].y is None:
                    cells[index].y = word.y
                break
        cells[current].texts.append(word.text)
        confidences[current].append(word.confidence)
    for cell, values in zip(cells, confidences):
        cell.confidence = sum(values) / len(values) if values else 0.0
    return Row(cells=cells)


def rejection_reason(row: Row, thresholds: Dict[str, Any]) -> Optional[str]:
    """返回行被拒绝的原因；None 表示通过。"""
    min_conf = float(thresholds.get("row_min_confidence", 60.0))
    for index, cell in enumerate(row.cells):
        if cell.texts and cell.confidence < min_conf:
            return f"low_confidence_col{index}"
    if FIELD_SEPARATOR not in row.text(RECEIVED_DATE) and FIELD_SEPARATOR not in row.text(RECORD_NUMBER):
        return "no_separator"
    return None


def accept_row(row: Row, thresholds: Dict[str, Any]) -> bool:
    return rejection_reason(row, thresholds) is None


def assemble_rows(
    lines: Sequence[Line], columns: Sequence[Column], layout: Layout, thresholds: Dict[str, Any]
) -> tuple[List[Row], int]:
    """组装全部行，返回 (通过的行, 被拒绝的行数)。被拒绝的行不重试，重叠窗口会提供更好的副本。"""
    accepted: List[Row] = []
    rejected = 0
    for line in lines:
        row = assemble_row(line, columns, layout)
        reason = rejection_reason(row, thresholds)
        if reason is None:
            accepted.append(row)
        else:
            rejected += 1
            log.debug("rows: 丢弃行 %s (%s)", " | ".join(row.text(i) for i in range(len(row.cells))), reason)
    return accepted, rejected
