"""Core business logic for transcript building."""

from datetime import timedelta

from .models import Transcript, TranscriptSegment

NO_SPEECH_TEXT = "No speech detected in the audio file."


class TranscriptBuilder:
    """Builds formatted transcripts from recognized segments."""

    def build(self, segments: list[TranscriptSegment], file_name: str) -> Transcript:
        """
        Builds a timestamped transcript for an uploaded video.

        Args:
            segments: Ordered speech segments from the recognition engine.
            file_name: Original upload name, echoed back to the caller.

        Returns:
            Transcript with text, segment count and word count. When nothing
            was recognized the text is the no-speech sentinel.
        """
        text = self._format(segments)
        if not text.strip():
            text = NO_SPEECH_TEXT
        return Transcript(
            file_name=file_name,
            text=text,
            segment_count=len(segments),
            word_count=count_words(text),
        )

    def _format(self, segments: list[TranscriptSegment]) -> str:
        """Formats segments as `[start - end] text` lines."""
        return "\n".join(
            f"[{format_offset(s.start)} - {format_offset(s.end)}] {s.text.strip()}"
            for s in segments
            if s.text.strip()
        )


def format_offset(offset: timedelta) -> str:
    """Formats an offset as HH:MM:SS."""
    total = max(int(offset.total_seconds()), 0)
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def count_words(text: str) -> int:
    return len(text.split())
