"""Chatbot gateway forwarding questions to a text-generation service."""

import logging
from typing import Optional

from fastapi import Request
from openai import OpenAI, OpenAIError

from kinnected.errors import ServerError, ValidationError

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = (
    "You are the assistant of Kinnected, a family tree application where people "
    "connect with their relatives (mother, father, siblings, spouse, children) and "
    "add relatives who are not on the app yet. Act as a family relationship advisor: "
    "answer questions about family relationships, connections and family dynamics, "
    "and about using a family tree. Keep the response concise, practical, and focused "
    "on maintaining healthy family relationships. Avoid any harmful or inappropriate advice."
)

SUGGESTIONS_PROMPT = (
    "Provide 3-5 specific suggestions for maintaining and improving a {relation} "
    "relationship.\nAdditional context: {context}\n"
    "Keep suggestions practical, positive, and focused on strengthening family bonds. "
    "Format as bullet points."
)

GREETINGS = {
    "hi",
    "hello",
    "hey",
    "hi there",
    "hello there",
    "good morning",
    "good afternoon",
    "good evening",
}

GREETING_REPLY = (
    "Hello! I'm the Kinnected assistant. Ask me anything about your family tree, "
    "your relatives, or keeping family relationships healthy."
)


class ChatbotGateway:
    """Stateless forwarder: every call is an independent completion."""

    def __init__(self, client: Optional[OpenAI], model: str):
        self.client = client
        self.model = model

    @classmethod
    def from_settings(cls, settings) -> "ChatbotGateway":
        client = None
        if settings.AI_API_KEY:
            client = OpenAI(
                api_key=settings.AI_API_KEY,
                base_url=settings.AI_BASE_URL,
                timeout=settings.AI_TIMEOUT_SECONDS,
                max_retries=0,
            )
        else:
            logger.warning("AI_API_KEY is not set, chatbot queries will fail")
        return cls(client, settings.AI_MODEL)

    def reply(self, text: str) -> str:
        text = (text or "").strip()
        if not text:
            raise ValidationError("Query is required")

        if text.lower() in GREETINGS:
            return GREETING_REPLY

        return self._complete(text)

    def suggestions(self, relation: str, context: Optional[str] = None) -> str:
        relation = (relation or "").strip()
        if not relation:
            raise ValidationError("Relation type is required")

        prompt = SUGGESTIONS_PROMPT.format(
            relation=relation,
            context=(context or "").strip() or "General advice",
        )
        return self._complete(prompt)

    def _complete(self, prompt: str) -> str:
        if self.client is None:
            raise ServerError("AI service is not configured")

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
            )
        except OpenAIError as exc:
            logger.exception("AI service call failed")
            raise ServerError("AI service is unavailable, please try again later") from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ServerError("AI service returned an empty response")
        return content


def get_chatbot(request: Request) -> ChatbotGateway:
    """FastAPI dependency returning the gateway built at startup."""
    return request.app.state.chatbot
