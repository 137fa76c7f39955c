"""流程上下文与数据结构：词、列、单元格、行、记录，以及运行期配置对象。"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

# 列序号：表格固定为五列
RECEIVED_DATE = 0
RECORD_NUMBER = 1
DESCRIPTION = 2
APPLICANT = 3
ADDRESS = 4

# 日期与编号列拼接时不加分隔，容忍 OCR 把一个词拆成几段
COMPACT_COLUMNS = (RECEIVED_DATE, RECORD_NUMBER)
FIELD_SEPARATOR = "/"


@dataclass(frozen=True)
class Word:
    """OCR 识别出的单个词，坐标已换算回原图像素空间。"""

    text: str
    confidence: float
    choice_count: int
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width


Line = List[Word]


@dataclass
class Column:
    x: float
    count: int = 1


@dataclass
class Cell:
    """单列内容：y 为首个对齐词的上边界，用于跨窗口分组。"""

    y: Optional[float] = None
    texts: List[str] = field(default_factory=list)
    confidence: float = 0.0


@dataclass
class Row:
    """一行的五个单元格，缺失内容的单元格文本为空但不会缺席。"""

    cells: List[Cell]

    def text(self, index: int) -> str:
        joiner = "" if index in COMPACT_COLUMNS else " "
        return joiner.join(self.cells[index].texts).strip()

    def confidence(self, index: int) -> float:
        return self.cells[index].confidence

    @property
    def y(self) -> Optional[float]:
        for cell in self.cells:
            if cell.y is not None:
                return cell.y
        return None


@dataclass
class AddressMatch:
    """地址纠正结果：文本 + 结构化匹配标记。"""

    text: str
    street_number: str = ""
    street: Optional[str] = None
    suburb: Optional[str] = None

    @property
    def has_suburb(self) -> bool:
        return self.suburb is not None

    @property
    def has_street(self) -> bool:
        return self.street is not None


@dataclass(frozen=True)
class Record:
    """去重、纠正后的最终记录，以编号为唯一键写入存储。"""

    record_number: str
    address: str
    description: str
    applicant: str
    received_date: str
    source_url: str
    comment_address: str
    scrape_date: str
    address_match: Optional[AddressMatch] = None

    def to_store_dict(self) -> Dict[str, str]:
        return {
            "recordNumber": self.record_number,
            "address": self.address,
            "description": self.description,
            "sourceUrl": self.source_url,
            "commentAddress": self.comment_address,
            "scrapeDate": self.scrape_date,
            "receivedDate": self.received_date,
        }


@dataclass(frozen=True)
class ReferenceData:
    """街道名、区名与纠错表，启动时构建一次，运行期间只读。"""

    street_names: Tuple[str, ...]
    suburb_names: Tuple[str, ...]
    corrections: Mapping[str, str]


@dataclass(frozen=True)
class Layout:
    """表格几何参数（原图像素）与放大倍数。"""

    line_height: int = 15
    section_height: int = 30
    section_step: int = 5
    column_gap: int = 45
    column_alignment: float = 10
    line_alignment: float = 5
    column_count: int = 5
    scale: float = 6.0

    @classmethod
    def from_config(cls, conf: Dict[str, Any]) -> "Layout":
        layout_cfg = conf.get("layout") or {}
        return cls(
            line_height=int(layout_cfg.get("line_height", 15)),
            section_height=int(layout_cfg.get("section_height", 30)),
            section_step=max(1, int(layout_cfg.get("section_step", 5))),
            column_gap=int(layout_cfg.get("column_gap", 45)),
            column_alignment=float(layout_cfg.get("column_alignment", 10)),
            line_alignment=float(layout_cfg.get("line_alignment", 5)),
            column_count=int(layout_cfg.get("column_count", 5)),
            scale=float(layout_cfg.get("scale", 6.0)),
        )


@dataclass
class ImageResult:
    """单张内嵌图片的处理结果与统计。"""

    page_number: int
    image_index: int
    shape: Tuple[int, int]
    bands: int = 0
    lines: int = 0
    columns: Optional[List[float]] = None
    column_counts: Optional[List[int]] = None
    rows_accepted: int = 0
    rows_rejected: int = 0
    rows_merged: int = 0
    records: List[Record] = field(default_factory=list)
    records_rejected: int = 0
    error: Optional[str] = None
    elapsed: float = 0.0


@dataclass
class DocumentResult:
    """单份 PDF 的结果：图片结果列表与写库统计。"""

    source_url: str
    images: List[ImageResult] = field(default_factory=list)
    inserted: int = 0
    elapsed: float = 0.0
    stage_times: Dict[str, float] = field(default_factory=dict)
