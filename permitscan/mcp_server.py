"""MCP Server for permit register extraction."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from permitscan import config as cfg
from permitscan import io_utils
from permitscan import store
from permitscan.pipeline import process_pdf

try:
    from fastmcp import FastMCP
except ImportError:
    raise ImportError(
        "fastmcp is required for MCP server mode. "
        "Install with: pip install fastmcp"
    )

# Initialize MCP server
mcp = FastMCP("permitscan")
log = logging.getLogger(__name__)


def _extract(pdf_file: Path, conf: dict, reference, database: str | None) -> dict[str, Any]:
    conn = store.open_database(database) if database else None
    try:
        doc = process_pdf(pdf_file.read_bytes(), pdf_file.resolve().as_uri(), reference, conf, conn)
    finally:
        if conn is not None:
            conn.close()
    records = [r.to_store_dict() for img in doc.images for r in img.records]
    return {
        "success": True,
        "input": str(pdf_file),
        "images": len(doc.images),
        "images_failed": sum(1 for img in doc.images if img.error),
        "records": records,
        "inserted": doc.inserted,
    }


@mcp.tool()
def extract_records(
    pdf_path: str,
    config_path: str | None = None,
    mode: str = "quality",
    database: str | None = None,
) -> dict[str, Any]:
    """
    Extract permit records from the scanned tables embedded in a PDF.

    Args:
        pdf_path: Path to the PDF file
        config_path: Optional YAML config overriding the defaults
        mode: Processing mode - "fast" or "quality"
        database: Optional SQLite path; records are upserted when given

    Returns:
        Dictionary with success status, records and processing info
    """
    pdf_file = Path(pdf_path)
    if not pdf_file.exists():
        return {
            "success": False,
            "error": f"Input file not found: {pdf_path}",
        }
    try:
        conf = cfg.load_config(config_path, mode=mode)
        reference = cfg.load_reference_data(conf)
        return _extract(pdf_file, conf, reference, database)
    except Exception as e:
        log.exception("Failed to process document")
        return {
            "success": False,
            "error": str(e),
        }


@mcp.tool()
def extract_directory(
    input_dir: str,
    config_path: str | None = None,
    mode: str = "quality",
    database: str | None = None,
) -> dict[str, Any]:
    """
    Extract permit records from every PDF in a directory.

    Returns:
        Dictionary with success status and per-file summary
    """
    pdfs = io_utils.list_pdfs(input_dir)
    if not pdfs:
        return {
            "success": False,
            "error": f"No PDFs found in {input_dir}",
        }
    conf = cfg.load_config(config_path, mode=mode)
    reference = cfg.load_reference_data(conf)

    results_summary = []
    errors = []
    for path in pdfs:
        try:
            result = _extract(Path(path), conf, reference, database)
            results_summary.append({"file": Path(path).name, "records": len(result["records"])})
        except Exception as e:
            log.exception("Failed to process %s", path)
            errors.append(f"{Path(path).name}: {str(e)}")

    return {
        "success": len(errors) == 0,
        "total": len(pdfs),
        "failed": len(errors),
        "results": results_summary,
        "errors": errors if errors else None,
    }


def main():
    """Start the MCP server."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    mcp.run()


if __name__ == "__main__":
    main()
