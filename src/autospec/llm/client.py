"""
Model Client

Thin wrapper around chat-completion calls. Every request asks for a JSON
object and the reply is validated against a caller-supplied pydantic
model; a reply that does not validate is raised as a typed error, never
coerced.

All supported providers are reached through the OpenAI SDK, using the
provider's OpenAI-compatible endpoint where needed.
"""

import base64
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Type, TypeVar

from openai import AsyncOpenAI
from pydantic import BaseModel, ValidationError

from ..config.settings import ModelConfig, ModelSpec
from ..core.errors import ModelResponseError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

Message = Dict[str, Any]


@dataclass
class Completion:
    """A validated model reply plus its token usage."""
    object: Any
    prompt_tokens: int = 0
    completion_tokens: int = 0


def text_part(text: str) -> Dict[str, Any]:
    return {"type": "text", "text": text}


def image_part(png: bytes) -> Dict[str, Any]:
    encoded = base64.b64encode(png).decode("ascii")
    return {"type": "image_url", "image_url": {"url": f"data:image/png;base64,{encoded}"}}


def schema_instructions(schema: Type[BaseModel]) -> str:
    """Describe the expected reply shape so JSON mode produces it."""
    return (
        "Respond with a single JSON object that validates against this JSON schema "
        "and nothing else:\n"
        f"{json.dumps(schema.model_json_schema(by_alias=True), indent=2)}"
    )


class ModelClient:
    """
    Structured-output chat client for one model.

    Args:
        spec: Registry entry for the model
        api_key: Key for the model's provider
        config: Sampling parameters
        client: Pre-built AsyncOpenAI client (tests inject a mock here)
    """

    def __init__(self, spec: ModelSpec, api_key: str, config: Optional[ModelConfig] = None,
                 client: Optional[AsyncOpenAI] = None):
        self.spec = spec
        self.config = config or ModelConfig()
        self.client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=spec.base_url,
            max_retries=self.config.max_retries,
        )

    @property
    def model_name(self) -> str:
        return self.spec.name

    async def complete(self, messages: List[Message], schema: Type[T],
                       error_cls: Type[ModelResponseError] = ModelResponseError) -> Completion:
        """
        Send the conversation and return the reply validated as ``schema``.

        Raises:
            error_cls: the reply is empty, not JSON, or fails validation
        """
        request_messages = [{"role": "system", "content": schema_instructions(schema)}] + list(messages)

        response = await self.client.chat.completions.create(
            model=self.spec.provider_model,
            messages=request_messages,
            response_format={"type": "json_object"},
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
            seed=self.config.seed,
        )

        content = response.choices[0].message.content if response.choices else None
        usage = response.usage
        prompt_tokens = getattr(usage, "prompt_tokens", 0) or 0
        completion_tokens = getattr(usage, "completion_tokens", 0) or 0

        if not content:
            raise error_cls(f"{self.spec.name} returned an empty response",
                            prompt_tokens=prompt_tokens, completion_tokens=completion_tokens)

        try:
            parsed = schema.model_validate_json(content)
        except ValidationError as e:
            raise error_cls(f"Response does not match {schema.__name__}: {e}", raw=content,
                            prompt_tokens=prompt_tokens, completion_tokens=completion_tokens) from e

        logger.info(json.dumps(parsed.model_dump(by_alias=True, mode="json"), indent=4))
        return Completion(object=parsed, prompt_tokens=prompt_tokens, completion_tokens=completion_tokens)
