"""
VideoMind — Mind Map Generator
===============================
Turns a time-stamped transcript into a mind map candidate using Groq and
Gemini with automatic failover.

Features:
  - Robust JSON extraction with retry logic (2 retries)
  - Multi-provider hybrid call with automatic failover
  - Transcript chunking for long videos

The returned dict is only a candidate; the lifecycle manager validates it.
"""

import json
import re
import logging
import asyncio
from typing import Any, Dict, List, Optional

import google.generativeai as genai
from groq import AsyncGroq

from videomind.core.config import settings
from videomind.core.errors import ResourceError
from videomind.schemas.mindmap import TranscriptLine

logger = logging.getLogger(__name__)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# CLIENT INITIALIZATION
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

logger.info(f"[GENERATE] Provider mode: {settings.AI_PROVIDER}")

groq_client: Optional[AsyncGroq] = None
if settings.GROQ_API_KEY:
    groq_client = AsyncGroq(api_key=settings.GROQ_API_KEY)
    logger.info("[GENERATE] ✓ Groq client ready")
else:
    logger.warning("[GENERATE] ✗ Groq API key missing")

if settings.GOOGLE_API_KEY:
    genai.configure(api_key=settings.GOOGLE_API_KEY, transport="rest")
    logger.info("[GENERATE] ✓ Gemini client ready")
else:
    logger.warning("[GENERATE] ✗ Google API key missing")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# SYSTEM PROMPT — GROUNDED + STRICT JSON
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

_GROUNDING = (
    "CRITICAL RULES:\n"
    "1. You MUST base everything strictly on the provided transcript.\n"
    "2. Do NOT use any external knowledge.\n"
    "3. Do NOT hallucinate or invent facts.\n"
    "4. Output ONLY valid JSON — no markdown fences, no commentary.\n\n"
)

MINDMAP_SYSTEM_PROMPT = (
    _GROUNDING +
    "You are a video summarization expert.\n"
    "Split the video into consecutive topics and summarize each one.\n\n"
    "Output MUST be valid JSON matching this EXACT schema:\n"
    "{\n"
    '  "root_topic": "Two or three sentences summarizing the whole video.",\n'
    '  "nodes": [\n'
    "    {\n"
    '      "topic": "Short topic label",\n'
    '      "summary": ["Bullet point", "Bullet point"],\n'
    '      "keywords": ["keyword", "keyword"],\n'
    '      "timestamp": [0, 42.5]\n'
    "    }\n"
    "  ]\n"
    "}\n\n"
    "Constraints:\n"
    "- timestamp is [start_seconds, end_seconds] taken from the transcript times.\n"
    "- start must be strictly less than end; topics appear in playback order.\n"
    "- 3-12 topic nodes, 2-4 summary bullets each, 2-6 keywords each.\n"
    "- Max 8 words per topic label.\n"
    "- All text must be in the SAME language as the transcript.\n"
)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# JSON RECOVERY
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def clean_and_parse_json(raw_text: str) -> Dict[str, Any]:
    """
    Robust JSON extractor:
    1. Strip markdown code fences (```json ... ```)
    2. Extract first { ... } block
    3. Parse with json.loads
    Raises ValueError on failure with diagnostic info.
    """
    if not raw_text or not raw_text.strip():
        raise ValueError("Empty AI response received")

    cleaned = raw_text.strip()

    # Strategy 1: Remove ```json ... ``` wrapper
    fence_match = re.search(r"```(?:json)?\s*\n?(.*?)\n?\s*```", cleaned, re.DOTALL)
    if fence_match:
        cleaned = fence_match.group(1).strip()

    # Strategy 2: Find the first { ... } block (greedy from first { to last })
    if not cleaned.startswith("{"):
        brace_match = re.search(r"\{.*\}", cleaned, re.DOTALL)
        if brace_match:
            cleaned = brace_match.group(0)

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error(f"JSON parse failed. Raw (first 500 chars): {raw_text[:500]}")
        raise ValueError(f"AI returned invalid JSON: {e}")

    if not isinstance(parsed, dict):
        raise ValueError(f"AI returned a JSON {type(parsed).__name__}, expected an object")
    return parsed


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TRANSCRIPT FORMATTING + CHUNKING
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def format_transcript(lines: List[TranscriptLine]) -> str:
    """One caption per line: '[12.0-18.5] text'."""
    return "\n".join(f"[{line.start}-{line.end}] {line.text.strip()}" for line in lines)


def chunk_text(text: str, chunk_size: int | None = None) -> list[str]:
    """Split text into chunks, breaking only between transcript lines."""
    chunk_size = chunk_size or settings.CHUNK_SIZE
    if len(text) <= chunk_size:
        return [text]

    chunks: list[str] = []
    current = ""

    for line in text.splitlines():
        if len(current) + len(line) + 1 > chunk_size and current:
            chunks.append(current.strip())
            current = line
        else:
            current = f"{current}\n{line}" if current else line

    if current.strip():
        chunks.append(current.strip())

    return chunks if chunks else [text]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# PROVIDER CALLS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

async def _call_groq(system_prompt: str, user_prompt: str) -> str:
    """Call Groq (Llama 3) with JSON mode and temperature=0."""
    if not groq_client:
        raise ValueError("Groq API Key missing")

    logger.info(f"[GENERATE] Calling Groq ({settings.GROQ_MODEL})...")
    completion = await groq_client.chat.completions.create(
        model=settings.GROQ_MODEL,
        messages=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        response_format={"type": "json_object"},
        temperature=0,
        max_tokens=8000,
    )
    result = completion.choices[0].message.content
    logger.info("[GENERATE] ✓ Groq call succeeded")
    return result


async def _call_gemini(system_prompt: str, user_prompt: str) -> str:
    """Call Gemini with JSON mode and temperature=0."""
    if not settings.GOOGLE_API_KEY:
        raise ValueError("Google API Key missing")

    logger.info(f"[GENERATE] Calling Gemini ({settings.GEMINI_MODEL})...")
    model = genai.GenerativeModel(
        model_name=settings.GEMINI_MODEL,
        generation_config={
            "response_mime_type": "application/json",
            "temperature": 0,
        },
    )
    full_prompt = f"{system_prompt}\n\nUser Task:\n{user_prompt}"
    response = await asyncio.to_thread(model.generate_content, full_prompt)
    logger.info("[GENERATE] ✓ Gemini call succeeded")
    return response.text


async def _hybrid_call(system_prompt: str, user_prompt: str, primary: str = "gemini") -> str:
    """
    Execute AI call with automatic failover.
    In 'hybrid' mode: tries primary first, then the other.
    """
    provider = settings.AI_PROVIDER

    if provider == "groq":
        callers = [("Groq", _call_groq)]
    elif provider == "gemini":
        callers = [("Gemini", _call_gemini)]
    else:  # hybrid
        if primary == "groq":
            callers = [("Groq", _call_groq), ("Gemini", _call_gemini)]
        else:
            callers = [("Gemini", _call_gemini), ("Groq", _call_groq)]

    last_error = None
    for name, caller in callers:
        try:
            return await caller(system_prompt, user_prompt)
        except Exception as e:
            last_error = e
            logger.warning(f"[GENERATE] {name} failed: {str(e)[:200]}. Trying next...")

    raise ResourceError(f"All AI providers failed. Last error: {last_error}")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# GENERATION WITH RETRY
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

MAX_RETRIES = 2


async def generate_mind_map(
    transcription: List[TranscriptLine],
    video_url: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Generate a mind map candidate from a transcript.
    Uses Gemini as primary (long context), Groq as fallback.

    The transcript itself (and video_url, when given) are attached to the
    result unless the model already returned them.
    """
    if not transcription:
        raise ResourceError("Cannot generate a mind map from an empty transcript")

    logger.info(f"[GENERATE] Starting generation from {len(transcription)} transcript lines...")

    chunks = chunk_text(format_transcript(transcription))
    source_text = "\n".join(chunks[:3])

    user_prompt = (
        f"Create a time-synchronized mind map for the following video transcript.\n"
        f"Each line starts with [start-end] in seconds.\n\n"
        f"TRANSCRIPT:\n{source_text}"
    )

    last_error = None
    for attempt in range(1, MAX_RETRIES + 1):
        try:
            raw = await _hybrid_call(MINDMAP_SYSTEM_PROMPT, user_prompt, primary="gemini")
            parsed = clean_and_parse_json(raw)
            break
        except ValueError as e:
            last_error = e
            logger.warning(f"[GENERATE] Attempt {attempt}/{MAX_RETRIES} failed: {e}")
    else:
        raise ResourceError(f"Mind map generation failed after {MAX_RETRIES} attempts: {last_error}")

    parsed.setdefault("transcription", [line.model_dump() for line in transcription])
    if video_url:
        parsed.setdefault("video_url", video_url)

    logger.info(f"[GENERATE] ✓ Candidate received (attempt {attempt})")
    return parsed
