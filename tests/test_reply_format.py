import pytest

from intake_bot.services.reply_format import MAX_REPLY_LENGTH, clamp, format_for_channel, short_error

SAMPLES = ["", "short", "x" * 799, "x" * 800, "x" * 801, "y" * 900, "z" * 5000]


class TestClamp:
    @pytest.mark.parametrize("text", SAMPLES)
    def test_length_never_exceeds_limit(self, text):
        assert len(clamp(text)) <= MAX_REPLY_LENGTH

    @pytest.mark.parametrize("text", SAMPLES)
    def test_idempotent(self, text):
        assert clamp(clamp(text)) == clamp(text)

    def test_text_within_limit_is_unchanged(self):
        text = "a" * 800
        assert clamp(text) == text

    def test_long_text_is_truncated_with_ellipsis(self):
        result = clamp("q" * 900)
        assert len(result) == 800
        assert result.endswith("...")
        assert result[:797] == "q" * 797


class TestFormatForChannel:
    def test_string_passes_through(self):
        assert format_for_channel("https://example.com/a.pdf") == "https://example.com/a.pdf"

    def test_structured_value_is_compact_json(self):
        assert format_for_channel({"id": 7, "status": "created"}) == '{"id":7,"status":"created"}'

    def test_long_value_is_clamped(self):
        assert len(format_for_channel({"blob": "b" * 2000})) == 800


class TestShortError:
    def test_prefix(self):
        assert short_error("timeout") == "Error: timeout"

    def test_clamped(self):
        assert len(short_error("e" * 1000)) == 800
