"""Entry point for the permitscan package."""

from __future__ import annotations

import argparse
import logging
import sys


def run_cli():
    """Run the CLI mode."""
    from permitscan import config as cfg
    from permitscan import io_utils
    from permitscan import runtime_utils
    from permitscan.pipeline import run

    parser = argparse.ArgumentParser(description="Scanned permit register OCR scraper")
    parser.add_argument("--config", default=None, help="Config file path")
    parser.add_argument("--mode", default=None, choices=["fast", "quality"], help="Processing mode")
    parser.add_argument("--pdf", action="append", default=None, help="Local PDF file or directory (repeatable)")
    parser.add_argument("--database", default=None, help="SQLite database path")
    parser.add_argument("--max-documents", type=int, default=None, help="Max documents to process (0 = all)")
    parser.add_argument("--ocr-engine", choices=["tesseract", "paddle"], default=None, help="OCR engine")
    parser.add_argument("--debug", action="store_true", help="Enable debug output")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

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
            logging.error("No PDFs found: %s", args.pdf)
            sys.exit(1)

    run(conf, reference, pdf_paths=pdf_paths)


def run_mcp():
    """Run the MCP server mode."""
    from permitscan.mcp_server import main as mcp_main
    mcp_main()


def main():
    """Main entry point that dispatches to CLI or MCP."""
    if len(sys.argv) > 1 and sys.argv[1] == "--mcp":
        sys.argv.pop(1)  # Remove --mcp flag
        run_mcp()
    else:
        run_cli()


if __name__ == "__main__":
    main()
