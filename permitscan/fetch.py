"""登记页抓取：解析 PDF 链接、挑选文档并下载。网络错误直接向上抛出。"""

from __future__ import annotations

import logging
import random
from typing import List, Optional, Sequence
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

log = logging.getLogger(__name__)


def fetch_listing(url: str, timeout: float = 60) -> str:
    log.info("fetch: 获取登记页 %s", url)
    response = requests.get(url, timeout=timeout)
    response.raise_for_status()
    return response.text


def parse_pdf_links(html: str, base_url: str, selector: str) -> List[str]:
    """按 CSS 选择器提取 PDF 链接，转为绝对地址并保序去重。"""
    soup = BeautifulSoup(html, "html.parser")
    urls: List[str] = []
    for link in soup.select(selector):
        href = link.get("href")
        if not href:
            continue
        url = urljoin(base_url, href)
        if url not in urls:
            urls.append(url)
    return urls


def choose_documents(urls: Sequence[str], count: int, rng: Optional[random.Random] = None) -> List[str]:
    """
    选最新一份（列表第一个）再随机补足其余份数；OCR 极耗内存与 CPU，不处理全部文档。
    count <= 0 表示全部处理。
    """
    if not urls:
        return []
    if count <= 0 or count >= len(urls):
        return list(urls)
    rng = rng or random.Random()
    chosen = [urls[0]]
    chosen.extend(rng.sample(list(urls[1:]), count - 1))
    return chosen


def download(url: str, timeout: float = 60) -> bytes:
    log.info("fetch: 下载文档 %s", url)
    response = requests.get(url, timeout=timeout)
    response.raise_for_status()
    return response.content
