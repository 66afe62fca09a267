from intake_bot.schemas.transcript import TranscriptMessage

__all__ = ["TranscriptMessage"]
