"""CLI 入口：抓取登记页（或处理本地 PDF）并把识别出的记录写入数据库。"""

import argparse
import logging

from permitscan import config as cfg
from permitscan import io_utils
from permitscan import runtime_utils
from permitscan.pipeline import run

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
log = logging.getLogger(__name__)


def main() -> None:
    """解析参数并调用 pipeline。"""
    parser = argparse.ArgumentParser(description="扫描登记表 OCR 抓取 CLI")
    parser.add_argument("--config", default=None, help="配置文件路径")
    parser.add_argument("--mode", default=None, choices=["fast", "quality"], help="处理模式（放大倍数预设）")
    parser.add_argument("--pdf", action="append", default=None, help="本地 PDF 文件或目录，可重复；不指定则抓取登记页")
    parser.add_argument("--database", default=None, help="SQLite 数据库路径（覆盖配置）")
    parser.add_argument("--max-documents", type=int, default=None, help="最多处理的文档数，0 表示全部")
    parser.add_argument("--ocr-engine", choices=["tesseract", "paddle"], default=None, help="OCR 引擎（覆盖配置）")
    parser.add_argument("--debug", action="store_true", help="开启调试输出")
    args = parser.parse_args()

    conf = runtime_utils.build_runtime_config(
        config_path=args.config,
        mode=args.mode,
        database=args.database,
        max_documents=args.max_documents,
        debug=args.debug,
        ocr_engine=args.ocr_engine,
    )
    reference = cfg.load_reference_data(conf)

    pdf_paths = None
    if args.pdf:
        pdf_paths = [p for item in args.pdf for p in io_utils.list_pdfs(item)]
        if not pdf_paths:
            log.error("未找到可处理的 PDF：%s", args.pdf)
            return

    summary = run(conf, reference, pdf_paths=pdf_paths)
    totals = summary["totals"]
    log.info("完成：文档 %d，记录 %d，新增 %d", totals["documents"], totals["records"], totals["inserted"])


if __name__ == "__main__":
    main()
