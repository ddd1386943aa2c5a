"""Tests for the command-line front end."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

from console import build_parser, convert_file, convert_folder, run
from domain import AudioArtifact, ConversionFailure, FailureKind, OutputKind, Transcript


def _pipeline(outcome) -> MagicMock:
    pipeline = MagicMock()
    pipeline.convert = AsyncMock(return_value=outcome)
    return pipeline


def test_convert_file_writes_audio(tmp_path) -> None:
    video = tmp_path / "clip.mp4"
    video.write_bytes(b"video")
    output = tmp_path / "out" / "clip.ogg"
    pipeline = _pipeline(
        AudioArtifact(data=b"OggS", content_type="audio/ogg", file_name="clip.ogg")
    )

    ok = asyncio.run(convert_file(pipeline, video, output, OutputKind.AUDIO))

    assert ok
    assert output.read_bytes() == b"OggS"
    request = pipeline.convert.await_args.args[0]
    assert request.audio_format == "ogg"
    assert request.size == 5


def test_convert_file_writes_transcript(tmp_path) -> None:
    video = tmp_path / "talk.mkv"
    video.write_bytes(b"video")
    output = tmp_path / "talk.txt"
    pipeline = _pipeline(
        Transcript(file_name="talk.mkv", text="[00:00:00 - 00:00:01] Hi", segment_count=1, word_count=5)
    )

    assert asyncio.run(convert_file(pipeline, video, output, OutputKind.TEXT))
    assert output.read_text(encoding="utf-8") == "[00:00:00 - 00:00:01] Hi"


def test_convert_file_reports_failure(tmp_path, capsys) -> None:
    video = tmp_path / "clip.mp4"
    video.write_bytes(b"video")
    pipeline = _pipeline(
        ConversionFailure(kind=FailureKind.CONVERSION_FAILED, message="Conversion failed")
    )

    ok = asyncio.run(convert_file(pipeline, video, tmp_path / "clip.mp3", OutputKind.AUDIO))

    assert not ok
    assert "Conversion failed" in capsys.readouterr().out
    assert not (tmp_path / "clip.mp3").exists()


def test_convert_folder_only_picks_videos(tmp_path) -> None:
    for name in ("a.mp4", "b.MOV", "notes.txt"):
        (tmp_path / name).write_bytes(b"data")
    pipeline = _pipeline(
        AudioArtifact(data=b"fLaC", content_type="audio/flac", file_name="x.flac")
    )

    converted, total = asyncio.run(convert_folder(pipeline, tmp_path, "flac"))

    assert (converted, total) == (2, 2)
    assert (tmp_path / "a.flac").exists()
    assert (tmp_path / "b.flac").exists()


def test_run_stops_when_ffmpeg_missing(tmp_path) -> None:
    transcoder = MagicMock()
    transcoder.is_available = AsyncMock(return_value=False)
    args = build_parser().parse_args(["audio", str(tmp_path / "a.mp4"), "a.mp3"])

    assert asyncio.run(run(args, MagicMock(), transcoder)) == 2
