"""
Completion Client

Async client for the LiteLLM proxy. LiteLLM speaks the OpenAI chat
completions protocol, so the OpenAI SDK is pointed at its base URL.
"""

from typing import Any, Dict, List, Optional

import openai

from utils.config import Settings
from utils.errors import CompletionServiceError
from utils.logger import ComponentLogger, get_logger


class CompletionClient:
    """
    Thin wrapper around openai.AsyncOpenAI.
    Requests are not retried; failures surface as CompletionServiceError.
    """

    def __init__(
        self,
        settings: Settings,
        client: Optional[openai.AsyncOpenAI] = None,
        logger: Optional[ComponentLogger] = None,
    ):
        self.settings = settings
        self.model = settings.litellm_model
        self.logger = logger or get_logger("CompletionClient")
        self._client = client

    def _get_client(self) -> openai.AsyncOpenAI:
        if self._client is None:
            try:
                self._client = openai.AsyncOpenAI(
                    api_key=self.settings.litellm_api_key,
                    base_url=self.settings.litellm_api_base,
                    timeout=self.settings.litellm_timeout_seconds,
                    max_retries=0,
                )
            except openai.OpenAIError as e:
                raise CompletionServiceError(f"Completion client is not configured: {e}")
        return self._client

    async def _create(self, **kwargs: Any):
        client = self._get_client()
        try:
            return await client.chat.completions.create(model=self.model, **kwargs)
        except openai.APIError as e:
            self.logger.error("Completion request failed", e, model=self.model)
            raise CompletionServiceError(f"Completion request failed: {e}")

    async def complete(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Send a chat completion and return the reply text ("" when empty)."""
        kwargs: Dict[str, Any] = {"messages": messages}
        if temperature is not None:
            kwargs["temperature"] = temperature
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens

        response = await self._create(**kwargs)
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def complete_with_function(
        self,
        messages: List[Dict[str, str]],
        name: str,
        description: str,
        parameters: Dict[str, Any],
    ) -> str:
        """
        Ask the model to answer by calling a single function.

        Returns the function arguments (a JSON string) when the model made the
        call, otherwise the plain reply text.
        """
        response = await self._create(
            messages=messages,
            functions=[{"name": name, "description": description, "parameters": parameters}],
            function_call={"name": name},
        )
        if not response.choices:
            return ""

        message = response.choices[0].message
        function_call = message.function_call
        if function_call and function_call.name == name:
            return function_call.arguments or ""

        self.logger.debug("Model replied without a function call", function=name)
        return message.content or ""
