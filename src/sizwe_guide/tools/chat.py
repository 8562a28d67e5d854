"""Sizwe Bot chat service."""

import logging
from typing import Optional

from ..models.guidance import ChatMessage, Conversation
from .ai_gateway import AIGateway


logger = logging.getLogger(__name__)

SIZWE_SYSTEM_PROMPT = """You are Sizwe The Bot, a friendly educational guidance assistant for South African learners and students, with a focus on Mpumalanga.

Help with questions about:
- Subject choices and what learners can study with their marks
- Universities and TVET colleges (e.g. University of Mpumalanga, Ehlanzeni, Gert Sibande and Nkangala TVET colleges)
- Careers, bursaries and application processes
- Scarce skills in South Africa: Mining, Engineering, Healthcare, Agriculture, IT, Tourism

Keep answers short, practical and encouraging. If you are unsure about a specific requirement or date, say so and suggest where to check."""

QUICK_QUESTIONS = [
    "What can I study with my current marks?",
    "Tell me about TVET colleges in Mpumalanga",
    "What are scarce skills in South Africa?",
]


class ChatService:
    """Answers user turns with the gateway, keeping the conversation."""

    def __init__(self, gateway: Optional[AIGateway] = None, system_prompt: str = SIZWE_SYSTEM_PROMPT):
        self._gateway = gateway
        self.system_prompt = system_prompt

    @property
    def gateway(self) -> AIGateway:
        if self._gateway is None:
            self._gateway = AIGateway()
        return self._gateway

    async def reply(self, conversation: Conversation, user_text: str) -> ChatMessage:
        """Append the user's turn, ask the gateway, append and return the answer.

        The user turn is removed again if the gateway fails, so a retry
        does not send it twice.
        """
        user_text = (user_text or "").strip()
        if not user_text:
            raise ValueError("Message is empty")

        conversation.add_user(user_text)
        turns = [{"role": "system", "content": self.system_prompt}] + conversation.as_turns()
        try:
            answer = await self.gateway.complete(turns)
        except Exception:
            conversation.messages.pop()
            raise

        logger.debug(f"Chat reply: {len(answer)} chars")
        return conversation.add_assistant(answer.strip())
