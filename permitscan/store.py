"""SQLite 存储：以编号为主键的幂等写入，重复编号静默忽略。"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from permitscan.context import Record

log = logging.getLogger(__name__)

_CREATE_TABLE = (
    "create table if not exists [data] ("
    "[council_reference] text primary key, [address] text, [description] text, "
    "[info_url] text, [comment_url] text, [date_scraped] text, [date_received] text, "
    "[on_notice_from] text, [on_notice_to] text)"
)


def open_database(path: str) -> sqlite3.Connection:
    """打开（必要时创建）数据库并确保表存在。"""
    if path != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path)
    conn.execute(_CREATE_TABLE)
    conn.commit()
    return conn


def insert_record(conn: sqlite3.Connection, record: Record) -> bool:
    """插入记录；编号已存在时不做任何事。返回是否新插入。写入错误向上抛出。"""
    row = record.to_store_dict()
    cursor = conn.execute(
        "insert or ignore into [data] values (?, ?, ?, ?, ?, ?, ?, ?, ?)",
        (
            row["recordNumber"],
            row["address"],
            row["description"],
            row["sourceUrl"],
            row["commentAddress"],
            row["scrapeDate"],
            row["receivedDate"],
            None,
            None,
        ),
    )
    conn.commit()
    inserted = cursor.rowcount > 0
    if inserted:
        log.info("store: 新增记录 %s", record.record_number)
    return inserted
