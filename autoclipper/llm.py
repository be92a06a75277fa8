"""Chat-completion client used to propose clips."""

import logging
from typing import Callable

import openai
from openai import OpenAI

from autoclipper.settings import CompletionConfig

log = logging.getLogger(__name__)

# (system_prompt, user_prompt) -> raw model text
Completer = Callable[[str, str], str]


class CompletionError(RuntimeError):
    pass


class CompletionTimeout(CompletionError):
    pass


class OpenAICompleter:
    """Send one system + user prompt pair and return the raw reply text.

    The reply is returned as-is; callers are responsible for parsing it.
    Any SDK failure is re-raised as CompletionError (or CompletionTimeout).
    """

    def __init__(self, config: CompletionConfig, client: OpenAI | None = None):
        self.config = config
        self._client = client

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(
                api_key=self.config.api_key,
                base_url=self.config.base_url,
                timeout=self.config.timeout,
                max_retries=1,
            )
        return self._client

    def __call__(self, system: str, user: str) -> str:
        kwargs = {}
        if self.config.json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        log.debug("Requesting completion from %s (%d prompt chars)", self.config.model, len(user))
        try:
            response = self.client.chat.completions.create(
                model=self.config.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
                **kwargs,
            )
        except openai.APITimeoutError as e:
            raise CompletionTimeout(f"Completion timed out after {self.config.timeout}s") from e
        except openai.OpenAIError as e:
            raise CompletionError(f"Completion request failed: {e}") from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""
