"""Async Ollama HTTP client for single-shot completions."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Self

import httpx

# ---------------------------------------------------------------------------
# Exception hierarchy
# ---------------------------------------------------------------------------


class OllamaError(Exception):
    """Base exception for Ollama client errors."""


class OllamaConnectionError(OllamaError):
    """Ollama server is unreachable."""


class OllamaTimeoutError(OllamaError):
    """Request exceeded configured timeout."""


class OllamaModelNotFoundError(OllamaError):
    """Requested model is not available on the server.

    Attributes:
        model: The model that was requested.
        available_models: Models currently pulled on the server.
    """

    def __init__(self, model: str, available_models: list[str]) -> None:
        self.model = model
        self.available_models = available_models
        super().__init__(
            f"Model {model!r} not found. Available: {', '.join(available_models) or 'none'}"
        )


class OllamaEmptyResponseError(OllamaError):
    """Ollama returned an empty completion."""


class OllamaMalformedResponseError(OllamaError):
    """Ollama response had invalid JSON or missing required fields."""


# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class GenerateOptions:
    """Sampling parameters for Ollama generation requests."""

    temperature: float = 0.7
    top_p: float = 0.9
    num_predict: int = 1024
    num_ctx: int = 4096

    def to_dict(self) -> dict[str, Any]:
        """Convert to Ollama API options dict."""
        return {
            "temperature": self.temperature,
            "top_p": self.top_p,
            "num_predict": self.num_predict,
            "num_ctx": self.num_ctx,
        }


@dataclass(frozen=True, slots=True)
class GenerateResult:
    """Result from a non-streaming generate request."""

    text: str
    model: str
    total_duration_ns: int
    eval_count: int


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class OllamaClient:
    """Async HTTP client for the Ollama REST API.

    Usage::

        async with OllamaClient() as client:
            result = await client.generate("Hello", model="qwen2.5:7b")
            print(result.text)
    """

    def __init__(
        self,
        host: str = "http://localhost:11434",
        timeout: float = 120.0,
    ) -> None:
        self._host = host.rstrip("/")
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> Self:
        self._client = httpx.AsyncClient(
            base_url=self._host,
            timeout=httpx.Timeout(self._timeout, connect=10.0),
        )
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Return the underlying httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError("OllamaClient must be used as an async context manager")
        return self._client

    # -- Health & model listing ------------------------------------------------

    async def health_check(self) -> bool:
        """Check if the Ollama server is reachable."""
        try:
            resp = await self.client.get("/")
            return resp.status_code == 200
        except httpx.ConnectError:
            return False
        except httpx.TimeoutException:
            return False

    async def list_models(self) -> list[str]:
        """List the tags of all models pulled on the server."""
        try:
            resp = await self.client.get("/api/tags")
            resp.raise_for_status()
        except httpx.ConnectError as exc:
            raise OllamaConnectionError(f"Cannot connect to {self._host}") from exc
        except httpx.TimeoutException as exc:
            raise OllamaTimeoutError("Timed out listing models") from exc

        return [m["name"] for m in resp.json().get("models", [])]

    async def is_model_available(self, model: str) -> bool:
        """Check if a model is pulled, trying with :latest suffix as fallback."""
        names = set(await self.list_models())
        if model in names:
            return True
        return ":" not in model and f"{model}:latest" in names

    # -- Generation ------------------------------------------------------------

    async def generate(
        self,
        prompt: str,
        model: str,
        system: str | None = None,
        options: GenerateOptions | None = None,
        json_mode: bool = False,
        max_retries: int = 1,
    ) -> GenerateResult:
        """Generate a non-streaming completion.

        Connection and timeout errors are retried with exponential backoff
        (1s, 2s, ...) up to ``max_retries`` total attempts.

        Args:
            prompt: The input prompt text.
            model: Ollama model tag (e.g. "qwen2.5:7b").
            system: Optional system prompt.
            options: Sampling parameters.
            json_mode: Ask the server to constrain output to JSON.
            max_retries: Total attempts for transient transport failures.

        Returns:
            GenerateResult with the completion text and metadata.

        Raises:
            OllamaConnectionError: Server unreachable after all attempts.
            OllamaTimeoutError: Request timed out after all attempts.
            OllamaModelNotFoundError: Model not pulled on server.
            OllamaEmptyResponseError: Empty completion.
            OllamaMalformedResponseError: Invalid response format.
        """
        if options is None:
            options = GenerateOptions()

        payload: dict[str, Any] = {
            "model": model,
            "prompt": prompt,
            "stream": False,
            "options": options.to_dict(),
        }
        if system:
            payload["system"] = system
        if json_mode:
            payload["format"] = "json"

        last_error = OllamaError(f"No response from {self._host}")
        for attempt in range(max(1, max_retries)):
            if attempt:
                await asyncio.sleep(2 ** (attempt - 1))
            try:
                resp = await self.client.post("/api/generate", json=payload)
            except httpx.ConnectError:
                last_error = OllamaConnectionError(f"Cannot connect to {self._host}")
                continue
            except httpx.TimeoutException:
                last_error = OllamaTimeoutError(
                    f"Request timed out (attempt {attempt + 1}/{max_retries})"
                )
                continue

            if resp.status_code == 404:
                available = await self.list_models()
                raise OllamaModelNotFoundError(model, available)
            try:
                resp.raise_for_status()
            except httpx.HTTPStatusError as exc:
                raise OllamaError(f"Ollama returned HTTP {resp.status_code}") from exc

            try:
                data = resp.json()
            except json.JSONDecodeError as exc:
                raise OllamaMalformedResponseError(f"Invalid response from Ollama: {exc}") from exc
            if "response" not in data:
                raise OllamaMalformedResponseError("Ollama response is missing 'response'")

            text = data["response"].strip()
            if not text:
                raise OllamaEmptyResponseError("Empty completion received")

            return GenerateResult(
                text=text,
                model=data.get("model", model),
                total_duration_ns=data.get("total_duration", 0),
                eval_count=data.get("eval_count", 0),
            )

        raise last_error
