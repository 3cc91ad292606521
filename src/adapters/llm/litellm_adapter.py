"""LiteLLM adapter implementing the LLM gateway contract.

Every model-backed operation in the intake assistant goes through this
adapter: build messages, call the provider with a timeout, pull a JSON
object out of the reply text, and translate provider failures into the
typed ``GatewayError`` family so callers can fall back.
"""

import asyncio
import json
import re
import time
from typing import Any, Dict, Optional

import litellm

from src.config import get_api_key, settings
from src.domain.errors import (
    CredentialMissingError,
    GatewayError,
    GatewayTimeoutError,
    MalformedResponseError,
    UpstreamError,
)
from src.domain.interfaces import ILLMGateway
from src.domain.schema import MockupImage
from src.utils.logger import get_logger
from src.utils.tracing import get_tracer

logger = get_logger(__name__)
tracer = get_tracer(__name__)

_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*|\s*```$")
_NETWORK_ERROR_PATTERN = re.compile(
    r"fetch failed|ECONNREFUSED|ENOTFOUND|ETIMEDOUT|ECONNRESET|network|socket hang up|connection",
    re.IGNORECASE,
)

NETWORK_ERROR_MESSAGE = (
    "Network error: could not reach the model provider. Common causes: VPN or firewall blocking the "
    "API host, no internet, or a corporate proxy. Try a different network or check with your IT team."
)


def parse_json_reply(content: Optional[str]) -> Dict[str, Any]:
    """Parse a JSON object out of free-form model text.

    Args:
        content: Raw reply text, optionally wrapped in a fenced code block.

    Returns:
        Parsed JSON object.

    Raises:
        MalformedResponseError: If the reply is empty, not JSON, or not an object.
    """
    text = (content or "").strip()
    if not text:
        raise MalformedResponseError("The model returned an empty response. Try again.")

    raw = _FENCE_PATTERN.sub("", text).strip()
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise MalformedResponseError("The model response was not valid JSON. Try again.") from exc

    if not isinstance(parsed, dict):
        raise MalformedResponseError("The model response was not a JSON object. Try again.")
    return parsed


def _upstream_message(status: Optional[int], detail: str) -> str:
    if status == 401:
        return "Invalid API key (401). Check OPENAI_API_KEY in .env.local."
    if status == 429:
        return "Rate limit exceeded (429). Try again in a moment."
    if status is not None and status >= 500:
        return "Model provider server error. Try again later."
    detail = detail.strip()[:100]
    if detail:
        return f"Model provider error: {detail}"
    return f"Model provider error ({status}). Check server logs."


def to_gateway_error(exc: Exception, timeout_seconds: float) -> GatewayError:
    """Translate a provider exception into the typed gateway error family."""
    if isinstance(exc, GatewayError):
        return exc
    if isinstance(exc, (asyncio.TimeoutError, litellm.Timeout)):
        return GatewayTimeoutError(timeout_seconds)

    status = getattr(exc, "status_code", None)
    detail = str(getattr(exc, "message", "") or exc)
    if isinstance(exc, litellm.AuthenticationError):
        status = 401
    elif isinstance(exc, litellm.RateLimitError):
        status = 429
    elif isinstance(exc, litellm.APIConnectionError) or (
        status is None and _NETWORK_ERROR_PATTERN.search(detail)
    ):
        return UpstreamError(None, NETWORK_ERROR_MESSAGE)

    if status is None:
        return UpstreamError(None, f"Model request failed: {detail[:150]}")
    return UpstreamError(int(status), _upstream_message(int(status), detail))


class LiteLLMGateway(ILLMGateway):
    """Uniform wrapper around chat-completion and image-generation calls."""

    def __init__(self, model: Optional[str] = None, image_model: Optional[str] = None):
        """Initialize gateway with model configuration.

        Args:
            model: Chat model name (defaults to settings.litellm_model).
            image_model: Image model name (defaults to settings.image_model).
        """
        self.model = model or settings.litellm_model
        self.image_model = image_model or settings.image_model

    def _require_api_key(self) -> str:
        api_key = get_api_key()
        if not api_key:
            raise CredentialMissingError()
        return api_key

    async def call_json(
        self,
        system_prompt: str,
        user_content: str,
        timeout_seconds: float,
        max_output_tokens: int,
        temperature: float = 0.3,
        operation: str = "chat_json",
    ) -> Dict[str, Any]:
        """Run one chat completion and return the JSON object it contains.

        Args:
            system_prompt: Fixed instructions for this call site.
            user_content: Payload built from the user's answers.
            timeout_seconds: Hard deadline; the request is cancelled after it.
            max_output_tokens: Completion token budget.
            temperature: Sampling temperature.
            operation: Name used in logs and spans.

        Returns:
            Parsed JSON object. Field-level shape is the caller's concern.

        Raises:
            GatewayError: On missing credential, timeout, upstream failure
                or malformed reply.
        """
        api_key = self._require_api_key()
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_content},
        ]

        with tracer.start_as_current_span(f"llm_gateway.{operation}") as span:
            span.set_attribute("llm.model", self.model)
            start_time = time.time()
            logger.debug("llm_gateway.call.start", operation=operation, model=self.model)
            try:
                response = await asyncio.wait_for(
                    litellm.acompletion(
                        model=self.model,
                        messages=messages,
                        temperature=temperature,
                        max_tokens=max_output_tokens,
                        api_key=api_key,
                        timeout=timeout_seconds,
                    ),
                    timeout=timeout_seconds,
                )
            except Exception as exc:
                error = to_gateway_error(exc, timeout_seconds)
                logger.warning(
                    "llm_gateway.call.failed",
                    operation=operation,
                    error_type=type(error).__name__,
                    error=error.message,
                    latency_ms=round((time.time() - start_time) * 1000),
                )
                span.set_attribute("llm.error", type(error).__name__)
                raise error from exc

            latency_ms = round((time.time() - start_time) * 1000)
            content = ""
            if getattr(response, "choices", None):
                content = response.choices[0].message.content or ""

            logger.info("llm_gateway.call.complete", operation=operation, latency_ms=latency_ms)
            return parse_json_reply(content)

    async def generate_image(self, prompt: str, timeout_seconds: float) -> MockupImage:
        """Generate one image for the prompt.

        Returns:
            MockupImage carrying inline base64 bytes or a remote URL.

        Raises:
            GatewayError: On failure or when neither payload is present.
        """
        api_key = self._require_api_key()

        with tracer.start_as_current_span("llm_gateway.generate_image") as span:
            span.set_attribute("llm.model", self.image_model)
            start_time = time.time()
            try:
                response = await asyncio.wait_for(
                    litellm.aimage_generation(
                        prompt=prompt,
                        model=self.image_model,
                        n=1,
                        size=settings.image_size,
                        response_format="b64_json",
                        api_key=api_key,
                        timeout=timeout_seconds,
                    ),
                    timeout=timeout_seconds,
                )
            except Exception as exc:
                error = to_gateway_error(exc, timeout_seconds)
                logger.warning(
                    "llm_gateway.image.failed",
                    error_type=type(error).__name__,
                    error=error.message,
                )
                raise error from exc

            data = getattr(response, "data", None) or []
            first = data[0] if data else None
            b64 = _payload_field(first, "b64_json")
            url = _payload_field(first, "url")

            logger.info(
                "llm_gateway.image.complete",
                latency_ms=round((time.time() - start_time) * 1000),
                inline=bool(b64),
            )
            if b64:
                return MockupImage(image_base64=b64)
            if url:
                return MockupImage(image_url=url)
            raise MalformedResponseError("Image response missing b64_json or url")

    async def ping(self, timeout_seconds: float) -> None:
        """Make the smallest possible completion to prove connectivity.

        Raises:
            GatewayError: If the provider cannot be reached or rejects the key.
        """
        api_key = self._require_api_key()
        try:
            await asyncio.wait_for(
                litellm.acompletion(
                    model=self.model,
                    messages=[{"role": "user", "content": "Hi"}],
                    max_tokens=1,
                    api_key=api_key,
                    timeout=timeout_seconds,
                ),
                timeout=timeout_seconds,
            )
        except Exception as exc:
            raise to_gateway_error(exc, timeout_seconds) from exc


def _payload_field(item: Any, name: str) -> Optional[str]:
    if item is None:
        return None
    if isinstance(item, dict):
        value = item.get(name)
    else:
        value = getattr(item, name, None)
    return value if isinstance(value, str) and value else None
