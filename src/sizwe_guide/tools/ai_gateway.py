"""Gemini gateway used for chat, summaries, recommendations and narration."""

import asyncio
import base64
import io
import json
import logging
import re
import wave
from typing import Any, Dict, List, Optional, Sequence, Tuple

from google import genai
from google.genai import types

from ..config import settings
from ..errors import ConfigurationError, UpstreamError, UpstreamParseError


logger = logging.getLogger(__name__)

FENCED_JSON = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)
PCM_RATE = re.compile(r"rate=(\d+)")
DEFAULT_PCM_RATE = 24000

ROLE_MAP = {"user": "user", "assistant": "model", "model": "model"}


def extract_json(text: str) -> Dict[str, Any]:
    """Pull a JSON object out of a model reply.

    Tries the whole reply, then a fenced code block, then the outermost
    {...} span.

    Raises:
        UpstreamParseError: If no JSON object can be extracted
    """
    if not text or not text.strip():
        raise UpstreamParseError("AI reply was empty")

    candidates = [text.strip()]
    candidates.extend(match.strip() for match in FENCED_JSON.findall(text))
    json_start = text.find("{")
    json_end = text.rfind("}") + 1
    if json_start != -1 and json_end > json_start:
        candidates.append(text[json_start:json_end])

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed

    raise UpstreamParseError("Failed to parse AI response")


def pcm_to_wav(pcm: bytes, sample_rate: int = DEFAULT_PCM_RATE, channels: int = 1, sample_width: int = 2) -> bytes:
    """Wrap raw little-endian PCM in a WAV container."""
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(channels)
        wav.setsampwidth(sample_width)
        wav.setframerate(sample_rate)
        wav.writeframes(pcm)
    return buffer.getvalue()


def to_data_url(audio: bytes, mime_type: str = "audio/wav") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(audio).decode('ascii')}"


class AIGateway:
    """Thin async wrapper over the google-genai client."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        client: Optional[Any] = None,
    ):
        self._model_name = model_name or settings.get_gemini_model_name()
        if client is not None:
            self._client = client
            return

        api_key = api_key or settings.gemini_api_key
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY is not configured")
        self._client = genai.Client(api_key=api_key)

    @property
    def model_name(self) -> str:
        return self._model_name

    @staticmethod
    def build_contents(turns: Sequence[Dict[str, str]]) -> Tuple[Optional[str], List[types.Content]]:
        """Split {role, content} turns into a system instruction and Gemini contents.

        Assistant turns before the first user turn (greetings) are dropped,
        since Gemini expects the conversation to open with the user.
        """
        system_parts: List[str] = []
        contents: List[types.Content] = []
        for turn in turns:
            role = turn.get("role", "user")
            text = turn.get("content", "")
            if role == "system":
                system_parts.append(text)
                continue
            gemini_role = ROLE_MAP.get(role, "user")
            if not contents and gemini_role == "model":
                continue
            contents.append(types.Content(role=gemini_role, parts=[types.Part(text=text)]))

        system = "\n\n".join(system_parts) if system_parts else None
        return system, contents

    async def complete(self, turns: Sequence[Dict[str, str]]) -> str:
        """Send a conversation and return the assistant's reply text."""
        system, contents = self.build_contents(turns)
        if not contents:
            raise ValueError("Conversation has no user turn to answer")

        config = types.GenerateContentConfig(system_instruction=system) if system else None
        loop = asyncio.get_event_loop()
        try:
            response = await loop.run_in_executor(
                None,
                lambda: self._client.models.generate_content(
                    model=self._model_name,
                    contents=contents,
                    config=config
                )
            )
        except Exception as e:
            logger.error(f"Gemini API call failed: {e}")
            raise UpstreamError(f"AI gateway error: {e}")

        text = getattr(response, "text", None)
        if not text:
            raise UpstreamError("AI gateway returned an empty reply")
        return text

    async def complete_json(self, turns: Sequence[Dict[str, str]]) -> Dict[str, Any]:
        """Like complete(), but extracts a JSON object from the reply."""
        reply = await self.complete(turns)
        try:
            return extract_json(reply)
        except UpstreamParseError:
            logger.error(f"Unparseable AI reply: {reply[:200]!r}")
            raise

    async def synthesize_speech(self, text: str, voice: Optional[str] = None) -> str:
        """Narrate text and return a data:audio/wav;base64 URL."""
        if not text or not text.strip():
            raise ValueError("No text to narrate")

        config = types.GenerateContentConfig(
            response_modalities=["AUDIO"],
            speech_config=types.SpeechConfig(
                voice_config=types.VoiceConfig(
                    prebuilt_voice_config=types.PrebuiltVoiceConfig(
                        voice_name=voice or settings.tts_voice
                    )
                )
            ),
        )
        loop = asyncio.get_event_loop()
        try:
            response = await loop.run_in_executor(
                None,
                lambda: self._client.models.generate_content(
                    model=settings.tts_model,
                    contents=text,
                    config=config
                )
            )
            inline = response.candidates[0].content.parts[0].inline_data
        except (IndexError, AttributeError, TypeError):
            raise UpstreamError("Narration service returned no audio")
        except Exception as e:
            logger.error(f"Narration request failed: {e}")
            raise UpstreamError(f"Narration service error: {e}")

        if inline is None or not inline.data:
            raise UpstreamError("Narration service returned no audio")

        mime_type = inline.mime_type or ""
        if mime_type.startswith("audio/wav") or mime_type.startswith("audio/x-wav"):
            wav_bytes = inline.data
        else:
            match = PCM_RATE.search(mime_type)
            rate = int(match.group(1)) if match else DEFAULT_PCM_RATE
            wav_bytes = pcm_to_wav(inline.data, sample_rate=rate)

        logger.info(f"Narration synthesized: {len(wav_bytes)} bytes")
        return to_data_url(wav_bytes)
