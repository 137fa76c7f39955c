"""字段纠正：地址对照街道/区名词表做模糊匹配，描述按纠错表逐段替换。

地址预期格式为 ``<门牌号> <街道名> <区名> <州缩写> <邮编>``，例如::

    2/121-130A Main North Road MEDINDIE GARDENS SA 5083

门牌号可含数字、横线与斜杠（无空格），区名可能被 OCR 错误地插入空格，
因此区名从末尾按 1~5 个词的窗口逐步扩大匹配。编辑距离阈值较小：
"Churcher" 这类真实街名不能被纠正成同样存在的 "Church"。
"""

from __future__ import annotations

import itertools
import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence

from rapidfuzz import process
from rapidfuzz.distance import Levenshtein

from permitscan.context import AddressMatch, ReferenceData

log = logging.getLogger(__name__)

_STREET_NUMBER_RE = re.compile(r"^[0-9]+[0-9/\-]*[A-Za-z]?$")
_POSTCODE_RE = re.compile(r"^[0-9]{4}$")
_STATE_RE = re.compile(r"^[A-Z]{2,3}$")


def closest_name(text: str, names: Sequence[str], max_distance: int) -> Optional[str]:
    """大小写不敏感的最近名称（编辑距离 <= max_distance），距离相同取词表中靠前者。"""
    if not text or not names:
        return None
    match = process.extractOne(
        text,
        names,
        scorer=Levenshtein.distance,
        processor=str.lower,
        score_cutoff=max_distance,
    )
    return match[0] if match else None


def is_street_number(token: str) -> bool:
    """门牌号样式：纯数字、数字加单个字母、含 / - 的组合，或长度不足 2 的碎片。"""
    return len(token) < 2 or bool(_STREET_NUMBER_RE.match(token))


def _split_state_postcode(tokens: List[str]) -> tuple[List[str], List[str]]:
    if len(tokens) >= 3 and _POSTCODE_RE.match(tokens[-1]) and _STATE_RE.match(tokens[-2]):
        return tokens[:-2], tokens[-2:]
    return tokens, []


def format_address(address: str, reference: ReferenceData, matching_cfg: Dict[str, Any] | None = None) -> AddressMatch:
    """纠正地址中的区名与街道名；区名无法识别时原样返回并标记。"""
    cfg = matching_cfg or {}
    suburb_max_distance = int(cfg.get("suburb_max_distance", 2))
    street_max_distance = int(cfg.get("street_max_distance", 3))
    suburb_max_tokens = int(cfg.get("suburb_max_tokens", 5))

    original = address.strip()
    body, tail = _split_state_postcode(original.split())

    suburb: Optional[str] = None
    suburb_tokens = 0
    for count in range(1, min(suburb_max_tokens, len(body)) + 1):
        suburb = closest_name(" ".join(body[-count:]), reference.suburb_names, suburb_max_distance)
        if suburb is not None:
            suburb_tokens = count
            break
    if suburb is None:
        log.debug("normalize: 无法识别区名 %r", original)
        return AddressMatch(text=original)

    street_tokens = body[: len(body) - suburb_tokens]
    number_tokens: List[str] = []
    window: List[str] = []
    street: Optional[str] = None
    leftovers: List[str] = []
    for index, token in enumerate(street_tokens):
        if is_street_number(token):
            number_tokens.append(token)
            continue
        window.append(token)
        street = closest_name(" ".join(window), reference.street_names, street_max_distance)
        if street is not None:
            leftovers = street_tokens[index + 1 :]
            break

    if street is None:
        corrected = " ".join(street_tokens + [suburb] + tail)
        log.debug("normalize: 无法识别街道名 %r", original)
        return AddressMatch(text=corrected, suburb=suburb)

    corrected = " ".join(number_tokens + [street] + leftovers + [suburb] + tail)
    if corrected != original:
        log.info("normalize: 地址纠正 %r -> %r", original, corrected)
    return AddressMatch(text=corrected, street_number=" ".join(number_tokens), street=street, suburb=suburb)


def correct_description(text: str, corrections: Mapping[str, str]) -> str:
    """在字母/非字母边界切分，字母段按纠错表精确替换。"""
    if not corrections:
        return text
    parts = []
    for is_alpha, chars in itertools.groupby(text, key=str.isalpha):
        run = "".join(chars)
        parts.append(corrections.get(run, run) if is_alpha else run)
    return "".join(parts)
