from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Optional, Sequence

from ..config import load_settings
from ..domain.export import to_markdown_table, to_tsv
from ..domain.models import ExtractionResult
from ..extraction import ExtractionEngine
from ..logging import get_logger
from ..service import ShelfScanService

LOG = get_logger("cli-main")


def _read_text(path: str) -> Optional[str]:
    if path == "-":
        return sys.stdin.read()
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        LOG.error(f"Cannot read {path}: {e}")
        return None


def _emit(result: ExtractionResult, fmt: str) -> None:
    if fmt == "tsv":
        print(to_tsv(result.products))
    elif fmt == "markdown":
        print(to_markdown_table(result.products))
    else:
        print(json.dumps(result.to_dict(), ensure_ascii=False))


def _add_format_arg(p: argparse.ArgumentParser) -> None:
    p.add_argument("--format", choices=["json", "tsv", "markdown"], default="json", help="Output format")


def _handle_text(ns: argparse.Namespace) -> int:
    text = _read_text(ns.file)
    if text is None:
        return 2
    settings = load_settings(os.getcwd())
    engine = ExtractionEngine(max_records=settings.max_records, confidence_policy=settings.confidence_policy)
    result = engine.extract(text)
    _emit(result, ns.format)
    return 0 if result.products else 1


def _handle_image(ns: argparse.Namespace) -> int:
    if not os.path.isfile(ns.source):
        LOG.error(f"Image not found: {ns.source}")
        return 2
    svc = ShelfScanService(load_settings(os.getcwd()))
    result = svc.extract_from_image(ns.source)
    if result.error:
        LOG.error(f"Extraction failed: {result.error}")
    _emit(result, ns.format)
    return 0 if result.products else 1


def _handle_classify(ns: argparse.Namespace) -> int:
    text = _read_text(ns.file)
    if text is None:
        return 2
    engine = ExtractionEngine()
    for c in engine.classify_text(text):
        detail = []
        if c.name:
            detail.append(f"name={c.name!r}")
        if c.skus:
            detail.append(f"sku={','.join(c.skus)}")
        if c.upcs:
            detail.append(f"upc={','.join(c.upcs)}")
        print(f"{c.line.line_no:>4}  {c.kind:<13} {c.line.text!r} {' '.join(detail)}".rstrip())
    return 0


def _handle_serve(ns: argparse.Namespace) -> int:
    from ..frontend import create_app
    import uvicorn

    app = create_app(load_settings(os.getcwd()), allow_origins=ns.allow_origins)
    uvicorn.run(app, host=ns.host, port=ns.port, log_level=ns.log_level)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    provided = list(argv) if argv is not None else sys.argv[1:]
    LOG.debug(f"CLI invoked with arguments: {provided}")

    parser = argparse.ArgumentParser(
        prog="shelfscan",
        description="Extract product name / SKU / UPC records from planogram OCR output.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    text_cmd = subparsers.add_parser("text", help="Run the extraction engine on OCR text.")
    text_cmd.add_argument("--file", required=True, help="Path to a text file, or '-' for stdin")
    _add_format_arg(text_cmd)
    text_cmd.set_defaults(handler=_handle_text)

    image_cmd = subparsers.add_parser("image", help="OCR an image and extract product records.")
    image_cmd.add_argument("--source", required=True, help="Path to the planogram image")
    _add_format_arg(image_cmd)
    image_cmd.set_defaults(handler=_handle_image)

    classify_cmd = subparsers.add_parser("classify", help="Show how each OCR line is classified.")
    classify_cmd.add_argument("--file", required=True, help="Path to a text file, or '-' for stdin")
    classify_cmd.set_defaults(handler=_handle_classify)

    serve_cmd = subparsers.add_parser("serve", help="Run the JSON API.")
    serve_cmd.add_argument("--host", default="127.0.0.1")
    serve_cmd.add_argument("--port", type=int, default=8001)
    serve_cmd.add_argument("--log-level", default="info")
    serve_cmd.add_argument(
        "--allow-origin",
        action="append",
        dest="allow_origins",
        help="Allowed CORS origin (can be provided multiple times, use '*' for any).",
    )
    serve_cmd.set_defaults(handler=_handle_serve)

    args = parser.parse_args(provided)
    code = args.handler(args)
    LOG.debug(f"Subcommand '{args.command}' finished with exit code {code}.")
    return code


if __name__ == "__main__":
    sys.exit(main())
