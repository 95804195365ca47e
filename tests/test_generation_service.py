"""
VideoMind - Generation Service Tests
=====================================

The provider call is stubbed; no network access.
"""

import asyncio

import pytest

from videomind.core.errors import ResourceError
from videomind.schemas.mindmap import TranscriptLine
from videomind.services import generation_service
from videomind.services.generation_service import chunk_text, clean_and_parse_json, format_transcript

LINES = [
    TranscriptLine(text="Welcome to the course.", start=0, end=4.5),
    TranscriptLine(text="Today: gradients.", start=4.5, end=9),
]

GOOD_RESPONSE = (
    '```json\n{"root_topic": "Gradients.", "nodes": '
    '[{"topic": "Intro", "summary": ["Hi"], "keywords": ["intro"], "timestamp": [0, 9]}]}\n```'
)


class TestCleanAndParseJson:
    def test_plain_object(self):
        assert clean_and_parse_json('{"a": 1}') == {"a": 1}

    def test_strips_code_fence(self):
        assert clean_and_parse_json('```json\n{"a": [1, 2]}\n```') == {"a": [1, 2]}

    def test_extracts_object_from_chatter(self):
        assert clean_and_parse_json('Sure! Here it is: {"a": 1} Enjoy.') == {"a": 1}

    @pytest.mark.parametrize("raw", ["", "   ", "no json here", "{broken"])
    def test_invalid(self, raw):
        with pytest.raises(ValueError):
            clean_and_parse_json(raw)

    def test_non_object(self):
        with pytest.raises(ValueError, match="expected an object"):
            clean_and_parse_json("[1, 2]")


class TestTranscriptText:
    def test_format_transcript(self):
        assert format_transcript(LINES) == "[0-4.5] Welcome to the course.\n[4.5-9] Today: gradients."

    def test_short_text_single_chunk(self):
        assert chunk_text("abc", chunk_size=10) == ["abc"]

    def test_chunks_break_between_lines(self):
        text = "\n".join(f"[{i}-{i + 1}] line {i}" for i in range(20))
        chunks = chunk_text(text, chunk_size=60)

        assert len(chunks) > 1
        assert all(len(c) <= 60 for c in chunks)
        assert "\n".join(chunks) == text


class TestGenerateMindMap:
    def test_success_attaches_transcript_and_url(self, monkeypatch):
        async def fake_call(system_prompt, user_prompt, primary="gemini"):
            assert "[4.5-9] Today: gradients." in user_prompt
            return GOOD_RESPONSE

        monkeypatch.setattr(generation_service, "_hybrid_call", fake_call)

        result = asyncio.run(generation_service.generate_mind_map(LINES, "https://example.com/v.mp4"))

        assert result["root_topic"] == "Gradients."
        assert result["video_url"] == "https://example.com/v.mp4"
        assert result["transcription"] == [
            {"text": "Welcome to the course.", "start": 0, "end": 4.5},
            {"text": "Today: gradients.", "start": 4.5, "end": 9},
        ]

    def test_retries_on_bad_json(self, monkeypatch):
        responses = iter(["not json at all", GOOD_RESPONSE])
        calls = []

        async def fake_call(system_prompt, user_prompt, primary="gemini"):
            calls.append(primary)
            return next(responses)

        monkeypatch.setattr(generation_service, "_hybrid_call", fake_call)

        result = asyncio.run(generation_service.generate_mind_map(LINES))

        assert len(calls) == 2
        assert "video_url" not in result

    def test_gives_up_after_retries(self, monkeypatch):
        async def fake_call(system_prompt, user_prompt, primary="gemini"):
            return "still not json"

        monkeypatch.setattr(generation_service, "_hybrid_call", fake_call)

        with pytest.raises(ResourceError, match="after 2 attempts"):
            asyncio.run(generation_service.generate_mind_map(LINES))

    def test_empty_transcript(self):
        with pytest.raises(ResourceError):
            asyncio.run(generation_service.generate_mind_map([]))

    def test_no_configured_provider_is_resource_error(self, monkeypatch):
        from videomind.core.config import settings
        monkeypatch.setattr(settings, "GOOGLE_API_KEY", None)
        monkeypatch.setattr(generation_service, "groq_client", None)

        with pytest.raises(ResourceError, match="All AI providers failed"):
            asyncio.run(generation_service.generate_mind_map(LINES))
