"""
AI service package: the language-model collaborator.

This package provides:
- AIService: schema-constrained JSON generation through OpenAI structured outputs
- prompts: system and user prompts for extraction and field suggestion
- exceptions: classified model-call failures

Callers hand in a strict JSON schema and get back a decoded JSON object; they
remain responsible for validating it against their own pydantic models.
"""

import json
import logging
from typing import Any, Callable

import openai
from openai import AsyncOpenAI

from ...config import get_settings
from .exceptions import AIServiceError, ModelFailure

logger = logging.getLogger(__name__)

__all__ = [
    "AIService",
    "AIServiceError",
    "ModelFailure",
    "get_ai_service",
]


class AIService:
    """
    Service for schema-constrained generation with an OpenAI model.

    Runs in mock mode when no API key is configured: every call then returns
    the caller-supplied mock object instead of contacting OpenAI.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        use_mock: bool = False,
    ):
        """
        Initialize the AI service.

        Args:
            api_key: OpenAI API key. If None, reads from config/environment.
            model: OpenAI model to use. If None, reads from config.
            timeout: Request timeout in seconds. If None, reads from config.
            use_mock: If True, return mock data instead of calling OpenAI.
        """
        settings = get_settings()
        if api_key is None:
            api_key = settings.openai_api_key

        self.api_key = api_key
        self.model = model or settings.openai_model
        self.timeout = timeout if timeout is not None else settings.openai_timeout
        self.use_mock = use_mock or not self.api_key
        self._client: AsyncOpenAI | None = None

        if self.use_mock:
            logger.warning(
                "AI Service running in MOCK MODE. Set OPENAI_API_KEY in .env for real extraction."
            )

    @property
    def client(self) -> AsyncOpenAI:
        """Lazy-load the OpenAI client."""
        if self._client is None:
            if not self.api_key:
                raise AIServiceError(
                    "OpenAI API key not provided. Set OPENAI_API_KEY environment variable.",
                    ModelFailure.AUTH,
                )
            # Failures surface to the user immediately, the client must not retry
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    async def generate_object(
        self,
        prompt: str,
        *,
        schema_name: str,
        json_schema: dict[str, Any],
        system_prompt: str | None = None,
        mock: Callable[[], dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        """
        Ask the model for a JSON object conforming to ``json_schema``.

        Args:
            prompt: User prompt.
            schema_name: Name of the response schema (letters, digits, _ and -).
            json_schema: Strict JSON schema for the response.
            system_prompt: Optional system prompt.
            mock: Factory for the response in mock mode.

        Returns:
            The decoded JSON object. Conformance to the schema is best-effort.

        Raises:
            AIServiceError: If the call fails or the output is not a JSON object.
        """
        if self.use_mock:
            if mock is None:
                raise AIServiceError(
                    "AI service is in mock mode and no mock response is available",
                    ModelFailure.AUTH,
                )
            logger.info("Generating '%s' (MOCK MODE)", schema_name)
            return mock()

        messages: list[dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        logger.info("Requesting '%s' from %s", schema_name, self.model)

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": schema_name,
                        "schema": json_schema,
                        "strict": True,
                    },
                },
            )
        except AIServiceError:
            raise
        except openai.RateLimitError as e:
            raise AIServiceError(f"OpenAI quota or rate limit exceeded: {e}", ModelFailure.QUOTA) from e
        except (openai.AuthenticationError, openai.PermissionDeniedError) as e:
            raise AIServiceError(f"OpenAI authentication failed: {e}", ModelFailure.AUTH) from e
        except openai.APITimeoutError as e:
            raise AIServiceError(f"OpenAI request timed out: {e}", ModelFailure.TIMEOUT) from e
        except openai.APIConnectionError as e:
            raise AIServiceError(f"Could not reach OpenAI: {e}", ModelFailure.TIMEOUT) from e
        except (openai.BadRequestError, openai.UnprocessableEntityError) as e:
            raise AIServiceError(
                f"OpenAI rejected the request: {e}", ModelFailure.INVALID_REQUEST
            ) from e
        except openai.OpenAIError as e:
            logger.exception("OpenAI call failed")
            raise AIServiceError(f"OpenAI call failed: {e}") from e

        return self._decode_response(response)

    def _decode_response(self, response: Any) -> dict[str, Any]:
        choice = response.choices[0]

        refusal = getattr(choice.message, "refusal", None)
        if refusal:
            raise AIServiceError(f"Model refused the request: {refusal}", ModelFailure.MALFORMED_OUTPUT)

        if choice.finish_reason == "length":
            raise AIServiceError(
                "Model output was truncated before the JSON object was complete",
                ModelFailure.MALFORMED_OUTPUT,
            )

        content = choice.message.content
        if not content:
            raise AIServiceError("Empty response from OpenAI", ModelFailure.MALFORMED_OUTPUT)

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error("Failed to parse model response: %s", content[:500])
            raise AIServiceError(
                f"Invalid JSON in model response: {e}", ModelFailure.MALFORMED_OUTPUT
            ) from e

        if not isinstance(data, dict):
            raise AIServiceError(
                f"Expected a JSON object, got {type(data).__name__}",
                ModelFailure.MALFORMED_OUTPUT,
            )
        return data


# =============================================================================
# Singleton Factory
# =============================================================================

_ai_service: AIService | None = None


def get_ai_service() -> AIService:
    """Get or create the AI service singleton."""
    global _ai_service
    if _ai_service is None:
        _ai_service = AIService()
    return _ai_service
