"""LLM-based translation over chat-completion HTTP APIs."""
import logging
from typing import Any, Dict, List, Optional

import httpx

from config import Config
from errors import MalformedResponseError, ProviderError, TransportError

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = "You are a professional translator."

DASHSCOPE_SYSTEM_PROMPT = (
    "You are a master translator. Translate the user's {source_language} input into "
    "{target_language}. Return only the translated content, nothing else."
)


def extract_completion_text(data: Any) -> str:
    """
    Pull ``choices[0].message.content`` out of a decoded response body.

    Raises:
        MalformedResponseError: naming the first field that is missing or
            has the wrong type.
    """
    if not isinstance(data, dict):
        raise MalformedResponseError("body", "is not a JSON object")

    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        raise MalformedResponseError("choices", "is missing or empty")

    first_choice = choices[0]
    if not isinstance(first_choice, dict):
        raise MalformedResponseError("choices[0]", "is not an object")

    message = first_choice.get("message")
    if not isinstance(message, dict):
        raise MalformedResponseError("choices[0].message", "is missing or not an object")

    content = message.get("content")
    if not isinstance(content, str):
        raise MalformedResponseError("choices[0].message.content", "is missing or not a string")

    return content


class BaseTranslator:
    """
    Chat-completion translator over a long-lived HTTP client.

    Subclasses only decide the request payload; transport, authentication
    and response parsing are shared.
    """

    default_model = ""

    def __init__(self, config: Config, client: Optional[httpx.Client] = None):
        self.config = config
        self.api_url = config.api_url
        self.model = config.model or self.default_model
        self.client = client or httpx.Client(timeout=config.request_timeout)
        self.headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {config.api_key}",
        }

    def build_payload(self, text: str, target_language: str) -> Dict[str, Any]:
        raise NotImplementedError

    def translate(self, text: str, target_language: str, timeout: Optional[float] = None) -> str:
        """
        Translate a single text.

        Args:
            text: Source text; an empty string returns "" without a request
            target_language: Free-form language name or code, passed to the provider as-is
            timeout: Overrides the client timeout for this call only

        Returns:
            The translated text

        Raises:
            TransportError, ProviderError, MalformedResponseError
        """
        if text == "":
            return ""

        payload = self.build_payload(text, target_language)
        request_kwargs: Dict[str, Any] = {"json": payload, "headers": self.headers}
        if timeout is not None:
            request_kwargs["timeout"] = timeout

        try:
            response = self.client.post(self.api_url, **request_kwargs)
        except httpx.RequestError as e:
            raise TransportError(f"API request to {self.api_url} failed: {e}") from e

        if not response.is_success:
            raise ProviderError(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError("body", "is not valid JSON") from e

        return extract_completion_text(data)

    def close(self) -> None:
        """Close the HTTP client."""
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class ChatCompletionTranslator(BaseTranslator):
    """Translator for OpenAI-compatible chat completion endpoints."""

    default_model = "gpt-3.5-turbo"

    def build_payload(self, text: str, target_language: str) -> Dict[str, Any]:
        messages: List[Dict[str, str]] = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": f"Translate the following text to {target_language}: {text}"},
        ]
        return {"model": self.model, "messages": messages}


class DashscopeTranslator(BaseTranslator):
    """
    Translator for the Dashscope (Qwen) compatible endpoint.

    The source language is pinned in the system prompt and the user
    message carries the raw text only. ``translation_options`` defaults to
    the configured ones and is sent only when non-empty.
    """

    default_model = "qwen-plus"

    def __init__(
        self,
        config: Config,
        client: Optional[httpx.Client] = None,
        translation_options: Optional[Dict[str, str]] = None,
    ):
        super().__init__(config, client)
        self.source_language = config.source_language
        if translation_options is None:
            translation_options = config.translation_options
        self.translation_options = translation_options

    def build_payload(self, text: str, target_language: str) -> Dict[str, Any]:
        system_prompt = DASHSCOPE_SYSTEM_PROMPT.format(
            source_language=self.source_language,
            target_language=target_language,
        )
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": text},
            ],
        }
        if self.translation_options:
            payload["translation_options"] = dict(self.translation_options)
        return payload

    def translate(self, text: str, target_language: str, timeout: Optional[float] = None) -> str:
        translated = super().translate(text, target_language, timeout=timeout)
        logger.debug("Dashscope translation: %s", translated)
        return translated


PROVIDERS = {
    "openai": ChatCompletionTranslator,
    "dashscope": DashscopeTranslator,
}


def create_translator(config: Config, client: Optional[httpx.Client] = None) -> BaseTranslator:
    """Instantiate the provider named by ``config.provider``."""
    try:
        translator_cls = PROVIDERS[config.provider.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown translation provider: {config.provider!r}. "
            f"Expected one of: {', '.join(sorted(PROVIDERS))}"
        ) from None
    return translator_cls(config, client)
