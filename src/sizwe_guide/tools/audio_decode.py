"""Narration fetch and decode using httpx, aiofiles and Librosa."""

import asyncio
import base64
import binascii
import logging
import mimetypes
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple
from urllib.parse import urlparse

import aiofiles
import httpx
import librosa
import numpy as np

from ..config import settings
from ..errors import DecodeError, FetchError


logger = logging.getLogger(__name__)

DEFAULT_SUFFIX = ".wav"


@dataclass
class DecodedAudio:
    """Time-addressable decoded narration."""
    samples: np.ndarray  # shape (n_samples, n_channels), float32 in [-1, 1]
    sample_rate: int
    duration: float

    @property
    def channels(self) -> int:
        return int(self.samples.shape[1])


def _suffix_for_mime(mime_type: Optional[str]) -> str:
    if not mime_type:
        return DEFAULT_SUFFIX
    if mime_type in ("audio/mpeg", "audio/mp3"):
        return ".mp3"
    return mimetypes.guess_extension(mime_type) or DEFAULT_SUFFIX


def _parse_data_url(locator: str) -> Tuple[bytes, str]:
    """Decode a base64 data: URL into bytes and a file suffix."""
    try:
        header, payload = locator.split(",", 1)
    except ValueError:
        raise FetchError("Malformed data URL: missing payload")

    mime_type = header[len("data:"):].split(";")[0] or None
    if ";base64" not in header:
        raise FetchError("Only base64 data URLs are supported for narration")

    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise FetchError(f"Invalid base64 in data URL: {e}")
    return data, _suffix_for_mime(mime_type)


async def fetch_audio(locator: str, timeout: Optional[float] = None) -> Tuple[bytes, str]:
    """Retrieve raw narration bytes.

    Args:
        locator: data: URL, http(s) URL or local file path

    Returns:
        (bytes, suffix) where suffix is a best guess at the file extension

    Raises:
        FetchError: If the resource is unreachable or empty
    """
    if not locator:
        raise FetchError("No narration resource was provided")

    if locator.startswith("data:"):
        data, suffix = _parse_data_url(locator)
    elif urlparse(locator).scheme in ("http", "https"):
        try:
            async with httpx.AsyncClient(timeout=timeout or settings.request_timeout) as client:
                response = await client.get(locator, follow_redirects=True)
        except httpx.HTTPError as e:
            raise FetchError(f"Could not reach narration resource: {e}")
        if response.status_code >= 400:
            raise FetchError(f"Narration resource returned HTTP {response.status_code}")
        data = response.content
        content_type = response.headers.get("content-type", "").split(";")[0].strip()
        suffix = Path(urlparse(locator).path).suffix or _suffix_for_mime(content_type)
    else:
        path = Path(locator)
        if not path.is_file():
            raise FetchError(f"Narration file not found: {locator}")
        async with aiofiles.open(path, "rb") as f:
            data = await f.read()
        suffix = path.suffix or DEFAULT_SUFFIX

    if not data:
        raise FetchError("Narration resource is empty")

    logger.debug(f"Fetched {len(data)} bytes of narration ({suffix})")
    return data, suffix


async def decode_audio(data: bytes, suffix: str = DEFAULT_SUFFIX) -> DecodedAudio:
    """Decode encoded audio bytes into a sample buffer.

    Raises:
        DecodeError: If the bytes are not a supported audio encoding
    """
    loop = asyncio.get_event_loop()

    with tempfile.TemporaryDirectory() as tmp_dir:
        tmp_path = Path(tmp_dir) / f"narration{suffix}"
        async with aiofiles.open(tmp_path, "wb") as f:
            await f.write(data)

        try:
            y, sr = await loop.run_in_executor(
                None, lambda: librosa.load(str(tmp_path), sr=None, mono=False)
            )
        except Exception as e:
            raise DecodeError(f"Unsupported or corrupt narration audio: {e}")

    y = np.asarray(y, dtype=np.float32)
    if y.ndim == 1:
        samples = y.reshape(-1, 1)
    else:
        samples = y.T

    if samples.shape[0] == 0 or not sr:
        raise DecodeError("Narration audio decoded to an empty buffer")

    duration = samples.shape[0] / float(sr)
    return DecodedAudio(samples=samples, sample_rate=int(sr), duration=duration)


async def load_narration(locator: str) -> DecodedAudio:
    """Fetch then decode a narration resource."""
    data, suffix = await fetch_audio(locator)
    decoded = await decode_audio(data, suffix)
    logger.info(f"Decoded narration: {decoded.duration:.2f}s @ {decoded.sample_rate}Hz")
    return decoded
