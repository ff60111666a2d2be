"""
Real-estate chat assistant backed by the Anthropic Messages API.
"""

from typing import Dict, List, Optional, Tuple
from inmobi.config import settings
from inmobi.models.property import Property
from inmobi.services.external import ExternalServiceClient
from inmobi.utils.exceptions import ExternalServiceError
import httpx
import logging

logger = logging.getLogger(__name__)

MAX_TOKENS = 500

FALLBACK_REPLY = (
    "I'm sorry, I'm having trouble connecting to my knowledge base right now. "
    "Please try again in a moment."
)

SYSTEM_PROMPT = """You are a helpful and knowledgeable real estate assistant for the Inmobi marketplace.
You provide information about properties, real estate trends, and advice to potential buyers.
Your responses should be friendly, professional, concise, and informative.
You should avoid making up specific details about properties that you don't know about.
When asked about property specifics, only use the information provided to you.
"""


def property_context(prop: Property) -> str:
    """Describe a listing for the system prompt."""
    year_built = prop.year_built if prop.year_built is not None else "Unknown"
    return (
        "\nThe user is viewing this property:\n"
        f"Property ID: {prop.id}\n"
        f"Title: {prop.title}\n"
        f"Price: ${prop.price:,}\n"
        f"Address: {prop.full_address}\n"
        f"Type: {prop.property_type.value}\n"
        f"Bedrooms: {prop.bedrooms}\n"
        f"Bathrooms: {prop.bathrooms}\n"
        f"Square Feet: {prop.square_feet}\n"
        f"Year Built: {year_built}\n"
        f"Description: {prop.description}\n"
        "\nWhen the user asks about this property, use this information to answer accurately.\n"
    )


class ChatService(ExternalServiceClient):
    """Anthropic client for the assistant and for generated listing copy."""

    service_name = "Anthropic"

    def __init__(self, api_key: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key if api_key is not None else settings.anthropic_api_key
        headers = {
            "anthropic-version": settings.anthropic_version,
            "content-type": "application/json",
        }
        if self.api_key:
            headers["x-api-key"] = self.api_key
        super().__init__(settings.anthropic_api_base, headers=headers, transport=transport)

    async def complete(self, system: str, messages: List[Dict[str, str]], max_tokens: int = MAX_TOKENS) -> str:
        """
        Run one Messages API call and return the first text block.

        Raises:
            ExternalServiceError: If the key is missing, the call fails or no text came back
        """
        if not self.api_key:
            raise ExternalServiceError(self.service_name, "ANTHROPIC_API_KEY is not configured")

        data = await self.post_json("/v1/messages", {
            "model": settings.anthropic_model,
            "max_tokens": max_tokens,
            "system": system,
            "messages": messages,
        })

        content = data.get("content") if isinstance(data, dict) else None
        for block in content if isinstance(content, list) else []:
            if isinstance(block, dict) and block.get("type") == "text" and block.get("text"):
                return block["text"]
        raise ExternalServiceError(self.service_name, "response contained no text")

    async def reply(
        self,
        message: str,
        history: Optional[List[Dict[str, str]]] = None,
        prop: Optional[Property] = None
    ) -> Tuple[str, bool]:
        """
        Answer a chat message.

        Returns:
            (reply, fallback) where fallback is True when the canned apology was used
        """
        system = SYSTEM_PROMPT
        if prop is not None:
            system += property_context(prop)

        messages = [{"role": turn["role"], "content": turn["content"]} for turn in history or []]
        messages.append({"role": "user", "content": message})

        try:
            return await self.complete(system, messages), False
        except ExternalServiceError as e:
            logger.error(f"Chat completion failed: {e.detail}")
            return FALLBACK_REPLY, True

    async def personalized_description(self, prop: Property, searches: List[dict]) -> Optional[str]:
        """
        Rewrite a listing description for a buyer's saved searches.

        Returns:
            The generated text, or None when the provider could not be used
        """
        if searches:
            interests = "\n".join(f"- {search}" for search in searches)
        else:
            interests = "- no saved searches"
        prompt = (
            "Write a short, engaging description of this property (at most 120 words) for a buyer "
            "whose recent searches were:\n"
            f"{interests}\n"
            "Highlight what matches those searches. Do not invent facts."
        )
        try:
            return await self.complete(SYSTEM_PROMPT + property_context(prop), [{"role": "user", "content": prompt}])
        except ExternalServiceError as e:
            logger.warning(f"Personalized description for {prop.id} fell back to template: {e.detail}")
            return None


def get_chat_service() -> ChatService:
    return ChatService()
