"""配置集中管理模块：默认参数 + YAML + 模式预设合并，以及参考词表加载。"""

from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any, Dict

import yaml

from permitscan import io_utils
from permitscan.context import ReferenceData

# 参考词表随包安装；默认路径不依赖当前工作目录
REFERENCE_DIR = Path(__file__).resolve().parent / "reference"
REFERENCE_KEYS = ("street_names", "suburb_names", "corrections")

DEFAULTS: Dict[str, Any] = {
    "mode": "quality",  # fast | quality
    "source": {
        "listing_url": "http://www.prospect.sa.gov.au/developmentregister",
        "link_selector": "div.uContentList a[href$='.pdf']",
        "comment_url": "mailto:admin@prospect.sa.gov.au",
        "max_documents": 2,  # 最新一份 + 随机抽取的其余份数
        "timeout": 60,
        "seed": None,
    },
    "paths": {
        "database": "data.sqlite",
        "street_names": str(REFERENCE_DIR / "streetnames.txt"),
        "suburb_names": str(REFERENCE_DIR / "suburbnames.txt"),
        "corrections": str(REFERENCE_DIR / "corrections.yaml"),
        "output_dir": "outputs",
        "debug_dir": "debug",
    },
    "layout": {
        "line_height": 15,  # 最高一行文字约 15 像素
        "section_height": 30,  # 每个识别窗口高度（约两行）
        "section_step": 5,  # 窗口纵向步进，相邻窗口大幅重叠
        "column_gap": 45,  # 列间空隙一般大于三倍行高
        "column_alignment": 10,  # 起点横向相差在此范围内视为同一列
        "line_alignment": 5,  # 纵坐标相差在此范围内视为同一物理行
        "column_count": 5,  # 收件日期/编号/描述/申请人/地址
        "scale": 6.0,  # 送 OCR 前的放大倍数
    },
    "cleanup": {
        "remove_rules": True,
        "dark_threshold": 64,
        "alpha_threshold": 196,
    },
    "ocr": {
        "engine": "tesseract",  # tesseract | paddle
        "lang": "eng",
        "psm": 6,
        "use_angle_cls": False,
    },
    "thresholds": {
        "row_min_confidence": 60.0,
        "number_min_confidence": 70.0,
        "address_min_confidence": 75.0,
    },
    "matching": {
        "suburb_max_distance": 2,
        "street_max_distance": 3,
        "suburb_max_tokens": 5,
    },
    "run": {
        "debug": False,
        "max_documents": None,
    },
    "threads": {
        "omp_num_threads": 1,
    },
}

# 模式预设：仅调整放大倍数，其余参数保持一致
MODE_PRESETS: Dict[str, Dict[str, Any]] = {
    "fast": {"layout": {"scale": 4.0}},
    "quality": {"layout": {"scale": 6.0}},
}


def _deep_update(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            base[k] = _deep_update(base[k], v)
        else:
            base[k] = v
    return base


def _resolve_reference_paths(cfg: Dict[str, Any], yaml_cfg: Dict[str, Any], config_path: Path) -> None:
    """YAML 中写的相对词表路径按配置文件所在目录解析。"""
    yaml_paths = yaml_cfg.get("paths") or {}
    base = config_path.resolve().parent
    for key in REFERENCE_KEYS:
        value = yaml_paths.get(key)
        if value and not Path(value).is_absolute():
            cfg["paths"][key] = str(base / value)


def load_config(config_path: str | None = None, mode: str | None = None) -> Dict[str, Any]:
    """加载配置，合并默认 + 模式预设 + YAML（YAML 优先级最高）。"""
    cfg = copy.deepcopy(DEFAULTS)
    yaml_cfg: Dict[str, Any] = {}
    if config_path:
        path = Path(config_path)
        if path.exists():
            with path.open("r", encoding="utf-8") as f:
                yaml_cfg = yaml.safe_load(f) or {}
    mode_lower = str(mode or yaml_cfg.get("mode") or cfg["mode"]).lower()
    preset = MODE_PRESETS.get(mode_lower)
    if preset is None:
        raise ValueError(f"未知模式：{mode_lower}")
    cfg = _deep_update(cfg, copy.deepcopy(preset))
    cfg = _deep_update(cfg, yaml_cfg)
    if yaml_cfg:
        _resolve_reference_paths(cfg, yaml_cfg, Path(config_path))
    cfg["mode"] = mode_lower
    # OCR 引擎线程数：仅在未预先设置时写入，避免覆盖外部配置
    omp_threads = cfg.get("threads", {}).get("omp_num_threads")
    if omp_threads and not os.environ.get("OMP_NUM_THREADS"):
        os.environ["OMP_NUM_THREADS"] = str(omp_threads)
    return cfg


def load_reference_data(conf: Dict[str, Any]) -> ReferenceData:
    """按配置路径读取街道名、区名与纠错表，整个运行期间只构建一次。"""
    paths = conf["paths"]
    return ReferenceData(
        street_names=io_utils.read_name_list(paths["street_names"]),
        suburb_names=io_utils.read_name_list(paths["suburb_names"]),
        corrections=io_utils.read_corrections(paths["corrections"]),
    )
