"""文件与图像读写工具。"""

import io
from pathlib import Path
from typing import Dict, Tuple

import numpy as np
import yaml
from PIL import Image


def encode_png(array: np.ndarray) -> bytes:
    """编码为 PNG 字节串。"""
    buf = io.BytesIO()
    Image.fromarray(array).save(buf, format="PNG")
    return buf.getvalue()


def list_pdfs(input_path: str) -> Tuple[str, ...]:
    """列出输入路径下的 PDF 文件（按后缀过滤）。"""
    p = Path(input_path)
    if p.is_file() and p.suffix.lower() == ".pdf":
        return (str(p),)
    if p.is_dir():
        return tuple(str(f) for f in sorted(p.iterdir()) if f.suffix.lower() == ".pdf")
    return ()


def read_name_list(path: str) -> Tuple[str, ...]:
    """读取每行一个名称的词表，忽略空行与 \\r。"""
    text = Path(path).read_text(encoding="utf-8")
    return tuple(line.strip() for line in text.replace("\r", "").split("\n") if line.strip())


def read_corrections(path: str) -> Dict[str, str]:
    """读取 YAML 纠错表（错误写法 -> 正确写法）。"""
    with Path(path).open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"纠错表格式错误，应为映射：{path}")
    return {str(k): str(v) for k, v in data.items()}
