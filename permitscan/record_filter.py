"""记录过滤：置信度与格式门槛，通过的行整理为最终记录。"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any, Dict, Optional

from permitscan.context import (
    ADDRESS,
    APPLICANT,
    DESCRIPTION,
    RECEIVED_DATE,
    RECORD_NUMBER,
    AddressMatch,
    Record,
    ReferenceData,
    Row,
)
from permitscan.normalize import correct_description, format_address

log = logging.getLogger(__name__)

# 编号严格格式：nnn/nnn/nnnn、nnn/nn/nnnn 或 nnn/n/nnnn，例如 "030/279/2018"
_RECORD_NUMBER_RE = re.compile(r"^[0-9]{3}/[0-9]{1,3}/[0-9]{4}$")


def is_record_number(text: str) -> bool:
    return bool(_RECORD_NUMBER_RE.match(text))


def parse_received_date(text: str) -> str:
    """D/MM/YYYY -> YYYY-MM-DD，无法解析时返回空串。"""
    try:
        return datetime.strptime(text.strip(), "%d/%m/%Y").strftime("%Y-%m-%d")
    except ValueError:
        return ""


def rejection_reason(row: Row, address: AddressMatch, thresholds: Dict[str, Any]) -> Optional[str]:
    """返回记录被拒绝的原因；None 表示可写入存储。"""
    if not address.has_suburb:
        return "unrecognized_suburb"
    if not address.has_street or not address.street_number:
        return "unrecognized_street"
    number = row.text(RECORD_NUMBER)
    if not is_record_number(number):
        return "bad_record_number"
    if row.confidence(RECORD_NUMBER) < float(thresholds.get("number_min_confidence", 70.0)):
        return "low_number_confidence"
    if row.confidence(ADDRESS) < float(thresholds.get("address_min_confidence", 75.0)):
        return "low_address_confidence"
    if row.y is None:
        return "no_line_position"
    return None


def accept_record(row: Row, address: AddressMatch, thresholds: Dict[str, Any]) -> bool:
    return rejection_reason(row, address, thresholds) is None


def build_record(
    row: Row,
    reference: ReferenceData,
    conf: Dict[str, Any],
    source_url: str,
    scrape_date: str,
) -> Optional[Record]:
    """纠正地址与描述后做门槛检查；不合格返回 None（低置信度是常态，不抛异常）。"""
    address = format_address(row.text(ADDRESS), reference, conf.get("matching"))
    reason = rejection_reason(row, address, conf.get("thresholds") or {})
    if reason is not None:
        log.debug("record_filter: 丢弃 %r (%s)", row.text(RECORD_NUMBER), reason)
        return None
    return Record(
        record_number=row.text(RECORD_NUMBER),
        address=address.text,
        description=correct_description(row.text(DESCRIPTION), reference.corrections),
        applicant=row.text(APPLICANT),
        received_date=parse_received_date(row.text(RECEIVED_DATE)),
        source_url=source_url,
        comment_address=(conf.get("source") or {}).get("comment_url", ""),
        scrape_date=scrape_date,
        address_match=address,
    )
