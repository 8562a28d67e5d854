"""Turn an uploaded study document into presentation content."""

import logging
from typing import Optional, Union

from ..errors import UpstreamParseError
from ..models.presentation import Difficulty, PresentationContent
from .ai_gateway import AIGateway, extract_json


logger = logging.getLogger(__name__)

SUMMARIZER_PROMPT = """You are an educational content summarizer for South African students.

Your task is to:
1. Read and understand the document content
2. Create a clear, engaging summary suitable for a video narration
3. Break down complex concepts into simple explanations
4. Structure the content in a logical flow with introduction, main points, and conclusion
5. Keep the summary between 200-400 words for a 2-3 minute video

Format the response as a JSON object with:
- title: A catchy title for the video
- summary: The main narration script (well-structured paragraphs)
- keyPoints: Array of 3-5 key takeaways
- difficulty: "Grade 9-10", "Grade 11-12", or "Tertiary\""""

FALLBACK_TITLE = "Document Summary"
MAX_DOCUMENT_CHARS = 200_000


def _decode_document(content: Union[bytes, str]) -> str:
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="replace")
    return content


async def summarize_document(
    content: Union[bytes, str],
    filename: str = "document.txt",
    gateway: Optional[AIGateway] = None,
) -> PresentationContent:
    """Summarize a document for a narrated student video.

    If the model does not answer with JSON, the raw reply becomes the
    summary under a generic title.
    """
    text = _decode_document(content).strip()
    if not text:
        raise ValueError("No file provided")
    if len(text) > MAX_DOCUMENT_CHARS:
        logger.warning(f"{filename} truncated from {len(text)} to {MAX_DOCUMENT_CHARS} characters")
        text = text[:MAX_DOCUMENT_CHARS]

    gateway = gateway or AIGateway()
    reply = await gateway.complete([
        {"role": "system", "content": SUMMARIZER_PROMPT},
        {"role": "user", "content": f"Summarize this document for a student video:\n\n{text}"},
    ])

    try:
        data = extract_json(reply)
        presentation = PresentationContent(
            title=str(data.get("title") or FALLBACK_TITLE),
            summary=str(data.get("summary") or "").strip() or reply.strip(),
            key_points=data.get("keyPoints") or data.get("key_points") or [],
            difficulty=data.get("difficulty"),
        )
    except UpstreamParseError:
        logger.warning(f"Summary for {filename} was not JSON, using raw reply")
        presentation = PresentationContent(
            title=FALLBACK_TITLE,
            summary=reply.strip(),
            key_points=[],
            difficulty=Difficulty.GENERAL,
        )

    logger.info(f"Summarized {filename}: '{presentation.title}' ({len(presentation.summary.split())} words)")
    return presentation


async def narrate_presentation(
    presentation: PresentationContent,
    gateway: Optional[AIGateway] = None,
) -> PresentationContent:
    """Attach synthesized narration of the summary as a data URL."""
    gateway = gateway or AIGateway()
    audio_url = await gateway.synthesize_speech(presentation.summary)
    return presentation.with_audio(audio_url)
