"""
Provider-agnostic LLM client for PropChat pipelines.

Supports Google Gemini and Groq behind a shared text-generation interface.
Groq is reached through its OpenAI-compatible endpoint with the openai SDK.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, Optional

import google.generativeai as genai
from openai import OpenAI

from .config import GROQ_BASE_URL, LLMConfig
from .errors import ProviderUnavailableError

logger = logging.getLogger("propchat.common.llm_client")

GEMINI = "gemini"
GROQ = "groq"
SUPPORTED_PROVIDERS = (GEMINI, GROQ)


class LLMClient(ABC):
    """Text completion against a single provider."""

    provider: str = ""

    def __init__(self, model: str, timeout: float = 30.0) -> None:
        self.model = model
        self.timeout = timeout
        self._client = None

    @property
    def is_available(self) -> bool:
        return self._client is not None

    def generate(
        self,
        prompt: str,
        *,
        temperature: float = 0.7,
        max_tokens: int = 512,
    ) -> str:
        if not self.is_available:
            raise ProviderUnavailableError(f"{self.provider} client is not available")
        return self._complete(prompt, temperature=temperature, max_tokens=max_tokens)

    @abstractmethod
    def _complete(self, prompt: str, *, temperature: float, max_tokens: int) -> str:
        """Send the prompt and return the stripped completion text"""


class GeminiClient(LLMClient):
    provider = GEMINI

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gemini-1.5-flash",
        timeout: float = 30.0,
    ) -> None:
        super().__init__(model, timeout)
        if not api_key:
            logger.info("%s API key not provided, LLM client unavailable", self.provider)
            return
        try:
            genai.configure(api_key=api_key)
            self._client = genai.GenerativeModel(model_name=model)
        except Exception as e:
            logger.warning("Failed to initialize Gemini client: %s", e)

    def _complete(self, prompt: str, *, temperature: float, max_tokens: int) -> str:
        response = self._client.generate_content(
            prompt,
            generation_config={"temperature": temperature, "max_output_tokens": max_tokens},
            request_options={"timeout": self.timeout},
        )
        return response.text.strip()


class GroqClient(LLMClient):
    provider = GROQ

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "llama3-8b-8192",
        base_url: str = GROQ_BASE_URL,
        timeout: float = 30.0,
    ) -> None:
        super().__init__(model, timeout)
        if not api_key:
            logger.info("%s API key not provided, LLM client unavailable", self.provider)
            return
        try:
            self._client = OpenAI(api_key=api_key, base_url=base_url)
        except Exception as e:
            logger.warning("Failed to initialize Groq client: %s", e)

    def _complete(self, prompt: str, *, temperature: float, max_tokens: int) -> str:
        response = self._client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=self.timeout,
        )
        return (response.choices[0].message.content or "").strip()


class ProviderRegistry:
    """
    Resolves a provider choice to a client.

    If the requested provider is unavailable and another one is, the other one
    is used instead. With nothing available the requested client is returned
    anyway and its ``generate`` raises ProviderUnavailableError.
    """

    def __init__(self, clients: Iterable[LLMClient], default: str = GEMINI) -> None:
        self._clients: Dict[str, LLMClient] = {c.provider: c for c in clients}
        if not self._clients:
            raise ValueError("ProviderRegistry needs at least one client")
        self.default = default if default in self._clients else next(iter(self._clients))

    @classmethod
    def from_config(cls, config: LLMConfig) -> "ProviderRegistry":
        return cls(
            [
                GeminiClient(
                    api_key=config.gemini_api_key or None,
                    model=config.gemini_model,
                    timeout=config.timeout,
                ),
                GroqClient(
                    api_key=config.groq_api_key or None,
                    model=config.groq_model,
                    base_url=config.groq_base_url,
                    timeout=config.timeout,
                ),
            ],
            default=(config.provider or GEMINI).lower(),
        )

    @property
    def providers(self) -> Dict[str, bool]:
        """Provider name -> availability"""
        return {name: client.is_available for name, client in self._clients.items()}

    def resolve(self, choice: Optional[str] = None) -> LLMClient:
        name = (choice or self.default).lower()
        if name not in self._clients:
            raise ValueError(f"Unsupported LLM provider: {choice}")

        client = self._clients[name]
        if client.is_available:
            return client

        for other in self._clients.values():
            if other.is_available:
                logger.warning("%s unavailable, falling back to %s", name, other.provider)
                return other
        return client
