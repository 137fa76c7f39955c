"""运行时辅助工具：配置加载与命令行覆盖。"""

from __future__ import annotations

from permitscan import config as cfg


def build_runtime_config(
    config_path: str | None,
    mode: str | None,
    database: str | None = None,
    max_documents: int | None = None,
    debug: bool = False,
    ocr_engine: str | None = None,
) -> dict:
    """
    加载配置并应用命令行开关（数据库路径、文档数、调试、OCR 引擎）。
    """
    conf = cfg.load_config(config_path, mode=mode)
    if database:
        conf["paths"]["database"] = database
    if max_documents is not None:
        conf["run"]["max_documents"] = max_documents
    if ocr_engine:
        conf["ocr"]["engine"] = ocr_engine
    conf["run"]["debug"] = bool(debug or conf["run"].get("debug", False))
    return conf
