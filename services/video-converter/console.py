"""
Command-line front end for the video converter.

Runs the same ConversionPipeline as the HTTP API against local files.

Examples:
  python console.py audio lecture.mp4 lecture.flac
  python console.py text interview.mkv interview.txt
  python console.py batch ./recordings --format ogg
"""

import argparse
import asyncio
import sys
import time
from pathlib import Path

from domain import AudioArtifact, ConversionFailure, ConversionRequest, OutputKind
from domain.formats import ALLOWED_VIDEO_EXTENSIONS, SUPPORTED_AUDIO_FORMATS
from handlers import ConversionPipeline
from infrastructure.interfaces import Transcoder


async def convert_file(
    pipeline: ConversionPipeline,
    input_path: Path,
    output_path: Path,
    output_kind: OutputKind,
) -> bool:
    """Converts one file and writes the artifact to `output_path`."""
    print(f"\nConverting: {input_path.name}")
    print(f"Output: {output_path.name}")
    started = time.monotonic()

    audio_format = output_path.suffix.lstrip(".").lower() or "mp3"
    with open(input_path, "rb") as source:
        request = ConversionRequest(
            file_name=input_path.name,
            source=source,
            size=input_path.stat().st_size,
            output_kind=output_kind,
            audio_format=audio_format,
        )
        outcome = await pipeline.convert(request)

    if isinstance(outcome, ConversionFailure):
        print(f"✗ {outcome.message}")
        return False

    output_path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(outcome, AudioArtifact):
        output_path.write_bytes(outcome.data)
    else:
        output_path.write_text(outcome.text, encoding="utf-8")
        _print_preview(outcome.text)

    elapsed = time.monotonic() - started
    print(f"✓ Conversion completed in {elapsed:.1f}s")
    print(f"  Output path: {output_path}")
    return True


async def convert_folder(
    pipeline: ConversionPipeline, folder: Path, audio_format: str
) -> tuple[int, int]:
    """Converts every video in `folder` next to its source. Returns (converted, total)."""
    videos = sorted(
        p
        for p in folder.iterdir()
        if p.is_file() and p.suffix.lower() in ALLOWED_VIDEO_EXTENSIONS
    )
    if not videos:
        print("No video files found in the specified folder.")
        return 0, 0

    print(f"\nFound {len(videos)} video files.")
    converted = 0
    for video in videos:
        if await convert_file(
            pipeline, video, video.with_suffix(f".{audio_format}"), OutputKind.AUDIO
        ):
            converted += 1

    print("\n=== Batch Conversion Complete ===")
    print(f"Successfully converted: {converted}/{len(videos)} files")
    return converted, len(videos)


def _print_preview(text: str, lines: int = 3) -> None:
    rows = [row for row in text.splitlines() if row.strip()]
    print("  Transcription preview:")
    for row in rows[:lines]:
        print(f"    {row}")
    if len(rows) > lines:
        print(f"    ... and {len(rows) - lines} more lines")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Convert videos to audio files or text transcripts."
    )
    commands = parser.add_subparsers(dest="command", required=True)

    audio = commands.add_parser("audio", help="extract the audio track")
    audio.add_argument("input", type=Path)
    audio.add_argument(
        "output",
        type=Path,
        help=f"output file; extension selects the format ({', '.join(SUPPORTED_AUDIO_FORMATS)})",
    )

    text = commands.add_parser("text", help="transcribe the speech")
    text.add_argument("input", type=Path)
    text.add_argument("output", type=Path, nargs="?")

    batch = commands.add_parser("batch", help="convert every video in a folder")
    batch.add_argument("folder", type=Path)
    batch.add_argument("--format", default="mp3", choices=SUPPORTED_AUDIO_FORMATS)
    return parser


async def run(
    args: argparse.Namespace, pipeline: ConversionPipeline, transcoder: Transcoder
) -> int:
    if not await transcoder.is_available():
        print("FFmpeg is not found. Please install FFmpeg and ensure it's in your PATH.")
        print("Download from: https://ffmpeg.org/download.html")
        return 2

    if args.command == "batch":
        if not args.folder.is_dir():
            print("Invalid folder path or folder does not exist.")
            return 1
        converted, total = await convert_folder(pipeline, args.folder, args.format)
        return 0 if converted == total else 1

    if not args.input.is_file():
        print("Invalid file path or file does not exist.")
        return 1

    if args.command == "text":
        output = args.output or args.input.with_suffix(".txt")
        ok = await convert_file(pipeline, args.input, output, OutputKind.TEXT)
    else:
        ok = await convert_file(pipeline, args.input, args.output, OutputKind.AUDIO)
    return 0 if ok else 1


def main(argv: list[str] | None = None) -> int:
    """Parses arguments and runs the requested conversion."""
    args = build_parser().parse_args(argv)

    from dependencies import (
        get_bootstrapper,
        get_pipeline,
        get_transcoder,
        get_transcriber,
    )

    async def _main() -> int:
        try:
            return await run(args, get_pipeline(), get_transcoder())
        finally:
            await get_bootstrapper().shutdown()
            get_transcriber().close()

    print("=== Video to Audio Converter ===")
    return asyncio.run(_main())


if __name__ == "__main__":
    sys.exit(main())
