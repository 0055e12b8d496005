"""
Chat completion against hosted language models.

Each provider turns (system prompt, user message) into one HTTP request and
returns the reply text. Which one is used is decided by settings only.
"""
import json
from abc import ABC, abstractmethod
from typing import Any

from aiohttp import ClientError, ClientSession, ClientTimeout

from app.internal.env_settings import ChatSettings
from app.util.exceptions import handle_external_api_error
from app.util.log import logger


class ChatMisconfigured(ValueError):
    pass


class ChatProviderError(Exception):
    pass


class ChatProvider(ABC):
    name: str = ""
    default_model: str = ""

    api_key: str
    model: str
    max_tokens: int
    temperature: float
    timeout: ClientTimeout

    def __init__(self, settings: ChatSettings):
        if not settings.api_key:
            raise ChatMisconfigured(f"{self.name} API key not configured")
        self.api_key = settings.api_key
        self.model = settings.model or self.default_model
        self.max_tokens = settings.max_tokens
        self.temperature = settings.temperature
        self.timeout = ClientTimeout(total=settings.timeout)

    @abstractmethod
    def build_request(
        self, system_prompt: str, message: str
    ) -> tuple[str, dict[str, str], dict[str, Any]]:
        """Return (url, headers, json payload) for one completion."""

    @abstractmethod
    def extract_text(self, data: dict[str, Any]) -> str:
        """Pull the reply text out of a successful response body."""

    async def complete(
        self,
        client_session: ClientSession,
        system_prompt: str,
        message: str,
    ) -> str:
        url, headers, payload = self.build_request(system_prompt, message)
        try:
            async with client_session.post(
                url, headers=headers, json=payload, timeout=self.timeout
            ) as response:
                if not response.ok:
                    body = await response.text()
                    logger.warning(
                        f"{self.name} returned {response.status}",
                        provider=self.name,
                        model=self.model,
                        body=body[:500],
                    )
                    raise ChatProviderError(f"{self.name} returned HTTP {response.status}")
                data = await response.json()
        except (ClientError, TimeoutError, json.JSONDecodeError) as e:
            handle_external_api_error(e, self.name, "chat completion", model=self.model)
            raise ChatProviderError(f"{self.name} request failed") from e

        try:
            text = self.extract_text(data)
        except (KeyError, IndexError, TypeError) as e:
            handle_external_api_error(e, self.name, "parse completion", model=self.model)
            raise ChatProviderError(f"Unexpected {self.name} response") from e

        logger.debug("Chat completion received", provider=self.name, model=self.model)
        return text


class OpenAIChatProvider(ChatProvider):
    name = "OpenAI"
    default_model = "gpt-3.5-turbo"
    url = "https://api.openai.com/v1/chat/completions"

    def build_request(self, system_prompt: str, message: str):
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": message},
            ],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        return self.url, headers, payload

    def extract_text(self, data: dict[str, Any]) -> str:
        return data["choices"][0]["message"]["content"]


class AnthropicChatProvider(ChatProvider):
    name = "Anthropic"
    default_model = "claude-3-5-haiku-latest"
    url = "https://api.anthropic.com/v1/messages"

    def build_request(self, system_prompt: str, message: str):
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": "2023-06-01",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.model,
            "system": system_prompt,
            "messages": [{"role": "user", "content": message}],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        return self.url, headers, payload

    def extract_text(self, data: dict[str, Any]) -> str:
        return "".join(
            block["text"] for block in data["content"] if block.get("type") == "text"
        )


class GeminiChatProvider(ChatProvider):
    name = "Gemini"
    default_model = "gemini-1.5-flash"
    api_url = "https://generativelanguage.googleapis.com/v1beta/models"

    def build_request(self, system_prompt: str, message: str):
        # key goes in a header, never in the URL
        headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }
        payload = {
            "systemInstruction": {"parts": [{"text": system_prompt}]},
            "contents": [{"role": "user", "parts": [{"text": message}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_tokens,
            },
        }
        return f"{self.api_url}/{self.model}:generateContent", headers, payload

    def extract_text(self, data: dict[str, Any]) -> str:
        parts = data["candidates"][0]["content"]["parts"]
        return "".join(part.get("text", "") for part in parts)


chat_providers: dict[str, type[ChatProvider]] = {
    "openai": OpenAIChatProvider,
    "anthropic": AnthropicChatProvider,
    "gemini": GeminiChatProvider,
}


def get_chat_provider(settings: ChatSettings) -> ChatProvider:
    provider_cls = chat_providers.get(settings.provider)
    if provider_cls is None:
        raise ChatMisconfigured(f"Unknown chat provider: {settings.provider}")
    return provider_cls(settings)


def build_system_prompt(book_count: int) -> str:
    return f"""You are a helpful reading assistant. You help manage a personal reading library and provide book recommendations.

Current library contains {book_count} books. When adding books, respond with a JSON object containing the book details in this format:
{{
  "action": "add_book",
  "book": {{
    "title": "Book Title",
    "author": "Author Name",
    "isbn": "1234567890",
    "pages": 300,
    "publisher": "Publisher Name",
    "year": 2024,
    "shelf": "to-read",
    "date_added": "2024/01/15",
    "date_read": null,
    "rating": null,
    "review": ""
  }}
}}

For other queries, provide helpful conversational responses about books and reading."""
