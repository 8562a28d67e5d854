"""Unit tests for the Gemini gateway."""

import base64
import io
import wave

import pytest
from unittest.mock import MagicMock, patch

from sizwe_guide.errors import ConfigurationError, UpstreamError, UpstreamParseError
from sizwe_guide.tools.ai_gateway import AIGateway, extract_json, pcm_to_wav


@pytest.fixture
def mock_client():
    client = MagicMock()
    client.models.generate_content.return_value = MagicMock(text="Hello from Gemini")
    return client


@pytest.fixture
def gateway(mock_client):
    return AIGateway(model_name="gemini-test", client=mock_client)


class TestExtractJson:
    """Test JSON extraction from model replies."""

    def test_plain_json(self):
        assert extract_json('{"pathway": "tvet"}') == {"pathway": "tvet"}

    def test_fenced_json(self):
        reply = 'Here you go:\n```json\n{"title": "Photosynthesis"}\n```\nGood luck!'
        assert extract_json(reply) == {"title": "Photosynthesis"}

    def test_embedded_json(self):
        reply = 'Sure! {"title": "Cells", "keyPoints": ["a"]} Hope that helps.'
        assert extract_json(reply)["title"] == "Cells"

    def test_prose_only(self):
        with pytest.raises(UpstreamParseError, match="Failed to parse AI response"):
            extract_json("I could not summarise this document.")

    def test_json_array_rejected(self):
        with pytest.raises(UpstreamParseError):
            extract_json('["a", "b"]')

    def test_empty_reply(self):
        with pytest.raises(UpstreamParseError):
            extract_json("   ")


class TestBuildContents:
    def test_system_turn_becomes_instruction(self):
        system, contents = AIGateway.build_contents([
            {"role": "system", "content": "Be helpful"},
            {"role": "user", "content": "Hi"},
        ])

        assert system == "Be helpful"
        assert len(contents) == 1
        assert contents[0].role == "user"
        assert contents[0].parts[0].text == "Hi"

    def test_assistant_maps_to_model(self):
        _, contents = AIGateway.build_contents([
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "Hello"},
            {"role": "user", "content": "TVET?"},
        ])

        assert [c.role for c in contents] == ["user", "model", "user"]

    def test_leading_greeting_dropped(self):
        system, contents = AIGateway.build_contents([
            {"role": "assistant", "content": "Hello! I'm Sizwe"},
            {"role": "user", "content": "Hi"},
        ])

        assert system is None
        assert [c.parts[0].text for c in contents] == ["Hi"]


class TestAIGateway:
    """Test AIGateway calls against a mocked client."""

    def test_missing_api_key(self):
        with patch('sizwe_guide.tools.ai_gateway.settings') as mock_settings:
            mock_settings.gemini_api_key = None
            mock_settings.get_gemini_model_name.return_value = "gemini-2.5-flash"

            with pytest.raises(ConfigurationError):
                AIGateway()

    @pytest.mark.asyncio
    async def test_complete(self, gateway, mock_client):
        reply = await gateway.complete([
            {"role": "system", "content": "Be brief"},
            {"role": "user", "content": "Hi"},
        ])

        assert reply == "Hello from Gemini"
        kwargs = mock_client.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-test"
        assert kwargs["config"].system_instruction == "Be brief"

    @pytest.mark.asyncio
    async def test_complete_without_user_turn(self, gateway):
        with pytest.raises(ValueError):
            await gateway.complete([{"role": "assistant", "content": "Hello"}])

    @pytest.mark.asyncio
    async def test_upstream_failure(self, gateway, mock_client):
        mock_client.models.generate_content.side_effect = RuntimeError("503 UNAVAILABLE")

        with pytest.raises(UpstreamError, match="503"):
            await gateway.complete([{"role": "user", "content": "Hi"}])

    @pytest.mark.asyncio
    async def test_empty_reply(self, gateway, mock_client):
        mock_client.models.generate_content.return_value = MagicMock(text="")

        with pytest.raises(UpstreamError):
            await gateway.complete([{"role": "user", "content": "Hi"}])

    @pytest.mark.asyncio
    async def test_complete_json(self, gateway, mock_client):
        mock_client.models.generate_content.return_value = MagicMock(
            text='```json\n{"pathway": "grade12"}\n```'
        )

        data = await gateway.complete_json([{"role": "user", "content": "Recommend"}])

        assert data == {"pathway": "grade12"}

    @pytest.mark.asyncio
    async def test_synthesize_speech_wraps_pcm(self, gateway, mock_client):
        pcm = b"\x00\x01" * 2400
        inline = MagicMock(data=pcm, mime_type="audio/L16;codec=pcm;rate=24000")
        response = MagicMock()
        response.candidates[0].content.parts[0].inline_data = inline
        mock_client.models.generate_content.return_value = response

        url = await gateway.synthesize_speech("Plants make food.", voice="Kore")

        assert url.startswith("data:audio/wav;base64,")
        wav_bytes = base64.b64decode(url.split(",", 1)[1])
        with wave.open(io.BytesIO(wav_bytes)) as wav:
            assert wav.getframerate() == 24000
            assert wav.getnchannels() == 1
            assert wav.getnframes() == 2400

    @pytest.mark.asyncio
    async def test_synthesize_speech_without_audio(self, gateway, mock_client):
        response = MagicMock()
        response.candidates = []
        mock_client.models.generate_content.return_value = response

        with pytest.raises(UpstreamError, match="no audio"):
            await gateway.synthesize_speech("Plants make food.")

    @pytest.mark.asyncio
    async def test_synthesize_empty_text(self, gateway):
        with pytest.raises(ValueError):
            await gateway.synthesize_speech("  ")


def test_pcm_to_wav_header():
    wav_bytes = pcm_to_wav(b"\x00\x00" * 100, sample_rate=16000)

    assert wav_bytes[:4] == b"RIFF"
    with wave.open(io.BytesIO(wav_bytes)) as wav:
        assert wav.getframerate() == 16000
        assert wav.getsampwidth() == 2
