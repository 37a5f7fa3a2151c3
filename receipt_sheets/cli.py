"""CLI entry point."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from dotenv import load_dotenv

from .camera import ReceiptCamera
from .config import load_config
from .errors import ReceiptPipelineError, user_message_for
from .models import RawImage, ReceiptRecord
from .pipeline import ReceiptPipeline
from .sheets import SheetAppender
from .vision import create_backend


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="receipt-sheets",
        description="Photograph a receipt, extract its contents and append them to a Google Sheet",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to a TOML config file",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command")

    # cameras
    sub.add_parser("cameras", help="List available cameras")

    # scan
    scan_parser = sub.add_parser("scan", help="Capture or load a receipt and save it")
    scan_parser.add_argument(
        "--image", type=str, default=None, help="Use an existing image file"
    )
    scan_parser.add_argument(
        "--camera", type=int, default=None, help="Camera index (overrides config)"
    )
    scan_parser.add_argument("--json", action="store_true", help="Print the receipt as JSON")
    scan_parser.add_argument(
        "--yes", "-y", action="store_true", help="Save without asking for confirmation"
    )

    # serve
    serve_parser = sub.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", type=str, default=None)
    serve_parser.add_argument("--port", type=int, default=None)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s  %(name)-30s  %(levelname)-5s  %(message)s",
    )

    load_dotenv(override=False)

    config = load_config(args.config)

    match args.command:
        case "cameras":
            _cmd_cameras()
        case "scan":
            sys.exit(asyncio.run(_cmd_scan(config, args)))
        case "serve":
            _cmd_serve(config, args)


def _cmd_cameras() -> None:
    cameras = ReceiptCamera.list_cameras()
    if not cameras:
        print("No cameras found.")
        return
    print(f"Available cameras: {len(cameras)}")
    for idx in cameras:
        print(f"  camera {idx}")


def format_receipt(record: ReceiptRecord) -> str:
    lines = [f"{record.store_name}  ({record.timestamp})"]
    for item in record.items:
        lines.append(
            f"  {item.name:<30} {item.category_or_default:<16} {item.price:>9.2f}"
        )
    lines.append(f"  {'Total':<47} {record.total:>9.2f}")
    return "\n".join(lines)


def _ask(prompt: str) -> bool:
    try:
        answer = input(prompt)
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


async def _cmd_scan(config, args) -> int:
    try:
        backend = create_backend(config)
    except ReceiptPipelineError as e:
        print(f"{e.user_message} ({e})", file=sys.stderr)
        return 2

    pipeline = ReceiptPipeline(
        backend=backend,
        appender=SheetAppender.from_config(config),
    )

    try:
        if args.image:
            record = await pipeline.process(RawImage.from_path(args.image))
        else:
            index = args.camera if args.camera is not None else config.camera.index
            print("Capturing...")
            record = await pipeline.process_from_camera(ReceiptCamera(index))
    except ReceiptPipelineError as e:
        print(pipeline.error_message or user_message_for(e), file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(record.to_dict(), ensure_ascii=False, indent=2))
    else:
        print(format_receipt(record))

    if not args.yes and not _ask("Save to spreadsheet? [y/N] "):
        pipeline.reset()
        print("Discarded.")
        return 0

    while True:
        try:
            result = await pipeline.confirm()
        except ReceiptPipelineError:
            print(pipeline.error_message, file=sys.stderr)
            if pipeline.can_retry_save and _ask("Retry saving? [y/N] "):
                continue
            return 1
        print(f"Receipt saved ({result.rows_added} row(s) added).")
        return 0


def _cmd_serve(config, args) -> None:
    try:
        import uvicorn
    except ImportError:
        raise ImportError("uvicorn is required: pip install uvicorn") from None

    from .api import create_app

    uvicorn.run(
        create_app(config),
        host=args.host or config.server.host,
        port=args.port or config.server.port,
    )


if __name__ == "__main__":
    main()
