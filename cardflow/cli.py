"""
cardflow command line.

Usage:
  # Syntax + structure report
  cardflow check card.json

  # Pretty-print (invalid files are echoed unchanged, exit 1)
  cardflow format card.json

  # Replay a file as a token stream through the preview loop
  cardflow preview card.json --width 1024 --chunk 40

Environment:
  CARDFLOW_LOG_LEVEL   — logging level (default: WARNING)
  CARDFLOW_DEBOUNCE_MS — ingestion quiet period (default: 300)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from cardflow.config import settings
from cardflow.kernel.errors import StructuralError
from cardflow.kernel.normalize import normalize_card
from cardflow.kernel.syntax import format_json, loads_strict, validate_syntax
from cardflow.services.ingestion import IngestionLoop
from cardflow.services.pipeline import PreviewPipeline, PreviewUpdate

# Preview replays a file, no need to wait for a typist
_PREVIEW_DEBOUNCE_MS = 5


def cmd_check(text: str) -> int:
    report = validate_syntax(text)
    if report.is_empty:
        print("empty: no card")
        return 0
    if not report.is_valid:
        print(f"invalid: {report.error} at position {report.position}")
        if report.suggestion:
            print(f"  hint: {report.suggestion}")
        return 1
    try:
        card = normalize_card(loads_strict(text))
    except StructuralError as e:
        print(f"structural: {e}")
        return 1
    print(f"ok: {card.id} ({len(card.sections)} sections, {len(card.actions)} actions)")
    return 0


def cmd_format(text: str) -> int:
    formatted = format_json(text)
    sys.stdout.write(formatted)
    return 0 if validate_syntax(text).is_valid else 1


def describe_update(update: PreviewUpdate) -> str:
    if update.is_empty:
        return "empty"
    if update.outcome is None or not update.ok:
        return f"failed: {update.message} (keeping previous preview)"
    diff = update.diff
    lines = [
        f"{update.outcome.tag}: {update.card.title!r} "
        f"+{len(diff.added)} -{len(diff.removed)} ~{len(diff.changed)} ={len(diff.unchanged)}"
    ]
    if update.layout is not None:
        for slot in update.layout.slots:
            lines.append(
                f"  {slot.section_id}: col {slot.column_offset} span {slot.column_span} "
                f"y {slot.row_offset:.0f} h {slot.height:.0f}"
            )
    return "\n".join(lines)


async def run_preview(text: str, width: int, chunk: int) -> PreviewUpdate | None:
    updates: list[PreviewUpdate] = []

    def on_update(update: PreviewUpdate) -> None:
        updates.append(update)
        print(describe_update(update))

    loop = IngestionLoop(on_update, pipeline=PreviewPipeline(width=width), debounce_ms=_PREVIEW_DEBOUNCE_MS)
    try:
        chunks = [text[i : i + chunk] for i in range(0, len(text), chunk)]
        for piece_end in range(1, len(chunks) + 1):
            loop.submit("".join(chunks[:piece_end]))
            # Let every other chunk's timer fire to show intermediate states
            if piece_end % 2 == 0:
                await asyncio.sleep(_PREVIEW_DEBOUNCE_MS * 2 / 1000)
        loop.flush()
    finally:
        loop.close()
    return updates[-1] if updates else None


def cmd_preview(text: str, width: int, chunk: int) -> int:
    final = asyncio.run(run_preview(text, width, chunk))
    if final is None:
        return 1
    return 0 if final.ok or final.is_empty else 1


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="cardflow", description="Card JSON validation and live preview")
    sub = p.add_subparsers(dest="command", required=True)

    check = sub.add_parser("check", help="Validate syntax and structure")
    check.add_argument("file")

    fmt = sub.add_parser("format", help="Pretty-print card JSON")
    fmt.add_argument("file")

    preview = sub.add_parser("preview", help="Replay a file through the preview loop")
    preview.add_argument("file")
    preview.add_argument("--width", type=int, default=settings.DEFAULT_WIDTH)
    preview.add_argument("--chunk", type=int, default=32)

    args = p.parse_args(argv)

    logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")

    try:
        text = Path(args.file).read_text(encoding="utf-8")
    except OSError as e:
        print(f"error: cannot read {args.file}: {e.strerror}", file=sys.stderr)
        return 1

    if args.command == "check":
        return cmd_check(text)
    if args.command == "format":
        return cmd_format(text)
    return cmd_preview(text, args.width, max(1, args.chunk))


if __name__ == "__main__":
    sys.exit(main())
