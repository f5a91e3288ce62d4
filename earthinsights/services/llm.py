# earthinsights/services/llm.py
import logging
from typing import Any, Dict, List, Optional

import openai
from openai import AsyncOpenAI

from ..core.config import Settings, settings
from ..core.errors import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)


class LanguageModel:
    """
    Thin wrapper over the OpenAI chat API. Returns raw text and translates
    SDK errors into UpstreamError; parsing is the caller's job.
    """

    def __init__(self, cfg: Settings = settings, client: Optional[AsyncOpenAI] = None):
        self.cfg = cfg
        self._client = client

    @property
    def configured(self) -> bool:
        return self._client is not None or bool(self.cfg.openai_api_key)

    def ensure_configured(self) -> None:
        if not self.configured:
            raise ConfigurationError(
                "The OpenAI API key is missing from the backend environment. Set OPENAI_API_KEY."
            )

    @property
    def client(self) -> AsyncOpenAI:
        self.ensure_configured()
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.cfg.openai_api_key,
                timeout=self.cfg.llm_timeout,
                max_retries=self.cfg.openai_max_retries,
            )
        return self._client

    async def _chat(self, model: str, messages: List[Dict[str, Any]], **kwargs) -> str:
        try:
            response = await self.client.chat.completions.create(model=model, messages=messages, **kwargs)
        except openai.APITimeoutError:
            raise UpstreamError("Language model request timed out", title="Request timeout", status_code=408)
        except openai.RateLimitError:
            raise UpstreamError("Language model rate limit exceeded", title="Rate limit exceeded", status_code=429)
        except openai.AuthenticationError:
            raise ConfigurationError("The OpenAI API key was rejected")
        except openai.APIConnectionError as e:
            raise UpstreamError(f"Language model unreachable: {e}")
        except openai.APIStatusError as e:
            raise UpstreamError(f"Language model error {e.status_code}: {e.message}")

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise UpstreamError("No content received from the language model")
        usage = getattr(response, "usage", None)
        if usage is not None:
            logger.debug("%s used %s tokens", model, usage.total_tokens)
        return content.strip()

    async def complete(self, system: str, user: str, temperature: float = 0.4, max_tokens: int = 800) -> str:
        return await self._chat(
            self.cfg.openai_model,
            [{"role": "system", "content": system}, {"role": "user", "content": user}],
            temperature=temperature,
            max_tokens=max_tokens,
        )

    async def describe_images(self, prompt: str, image_urls: List[str], system: Optional[str] = None,
                              detail: str = "auto", temperature: float = 0.5, max_tokens: int = 400) -> str:
        content: List[Dict[str, Any]] = [{"type": "text", "text": prompt}]
        content += [{"type": "image_url", "image_url": {"url": u, "detail": detail}} for u in image_urls]
        messages: List[Dict[str, Any]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": content})
        return await self._chat(
            self.cfg.openai_vision_model, messages, temperature=temperature, max_tokens=max_tokens
        )
