from collections.abc import Sequence
from functools import lru_cache, partial
import re
from typing import Protocol

from anthropic import APIError as AnthropicAPIError, AsyncAnthropic
from openai import APIError as OpenAIAPIError, AsyncOpenAI

from loggers import get_logger
from src.core.utils.retry import call_with_retries
from src.main.config import config
from src.script.exceptions import EmptyScriptException, ScriptGenerationException

logger = get_logger(__name__)

# Timeouts and connection failures are APIError subclasses in both SDKs
PROVIDER_ERRORS: tuple[type[Exception], ...] = (OpenAIAPIError, AnthropicAPIError)

PROMPT_TEMPLATE = """You are an expert AutoHotkey script generator. Convert the following natural language description into a working AutoHotkey script.

Rules:
1. Generate ONLY the AutoHotkey script code, no explanations
2. Use proper AutoHotkey syntax
3. Include comments only for complex operations
4. Make sure hotkeys use standard AutoHotkey format (e.g., ^j:: for Ctrl+J)
5. End hotkey definitions with 'return'
6. Use common AutoHotkey commands like Send, Run, WinActivate, etc.

Description: {description}

AutoHotkey Script:"""

_OPENING_FENCE = re.compile(r"^```[\w-]*\n?")
_CLOSING_FENCE = re.compile(r"\n?```$")


def build_prompt(description: str) -> str:
    return PROMPT_TEMPLATE.format(description=description)


def clean_script(raw: str | None) -> str:
    """Strip whitespace and a surrounding Markdown code fence."""
    script = (raw or "").strip()
    if script.startswith("```"):
        script = _CLOSING_FENCE.sub("", _OPENING_FENCE.sub("", script, count=1))
    return script.strip()


class CompletionProvider(Protocol):
    name: str

    async def complete(self, prompt: str) -> str: ...


class OpenAIProvider:
    name = "openai"

    def __init__(
        self, api_key: str, model: str, max_tokens: int, timeout: float
    ) -> None:
        self.client = AsyncOpenAI(api_key=api_key, timeout=timeout)
        self.model = model
        self.max_tokens = max_tokens

    async def complete(self, prompt: str) -> str:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=self.max_tokens,
            temperature=0.2,
        )
        return response.choices[0].message.content or ""


class AnthropicProvider:
    name = "anthropic"

    def __init__(
        self, api_key: str, model: str, max_tokens: int, timeout: float
    ) -> None:
        self.client = AsyncAnthropic(api_key=api_key, timeout=timeout)
        self.model = model
        self.max_tokens = max_tokens

    async def complete(self, prompt: str) -> str:
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=0.2,
            messages=[{"role": "user", "content": prompt}],
        )
        return "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )


class ScriptGenerator:
    """
    Turns a description into an AutoHotkey script.

    Providers are tried in order, each with bounded retries; the first
    successful completion wins.
    """

    def __init__(
        self,
        providers: Sequence[CompletionProvider],
        max_retries: int = 3,
        retry_delay: float = 1.0,
    ) -> None:
        self.providers = list(providers)
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    async def generate(self, description: str) -> str:
        """
        Raises:
            ScriptGenerationException: no provider configured or all of them failed
            EmptyScriptException: a provider answered with nothing usable
        """
        if not self.providers:
            logger.error("[ScriptGenerator] No LLM provider configured.")
            raise ScriptGenerationException()

        prompt = build_prompt(description)
        for provider in self.providers:
            try:
                raw = await call_with_retries(
                    partial(provider.complete, prompt),
                    max_retries=self.max_retries,
                    delay=self.retry_delay,
                    retry_on=PROVIDER_ERRORS,
                    label=f"{provider.name} completion",
                )
            except PROVIDER_ERRORS as e:
                logger.error(
                    "[ScriptGenerator] Provider '%s' failed: %s", provider.name, e
                )
                continue

            script = clean_script(raw)
            if not script:
                logger.warning(
                    "[ScriptGenerator] Provider '%s' returned an empty script.",
                    provider.name,
                )
                raise EmptyScriptException()
            logger.debug("[ScriptGenerator] Script generated by '%s'.", provider.name)
            return script

        raise ScriptGenerationException()


def build_providers() -> list[CompletionProvider]:
    llm = config.llm
    providers: list[CompletionProvider] = []
    if llm.OPENAI_API_KEY:
        providers.append(
            OpenAIProvider(
                llm.OPENAI_API_KEY,
                llm.OPENAI_MODEL,
                llm.LLM_MAX_TOKENS,
                llm.LLM_TIMEOUT_SECONDS,
            )
        )
    if llm.ANTHROPIC_API_KEY:
        providers.append(
            AnthropicProvider(
                llm.ANTHROPIC_API_KEY,
                llm.ANTHROPIC_MODEL,
                llm.LLM_MAX_TOKENS,
                llm.LLM_TIMEOUT_SECONDS,
            )
        )
    return providers


@lru_cache
def get_script_generator() -> ScriptGenerator:
    return ScriptGenerator(
        build_providers(),
        max_retries=config.llm.LLM_MAX_RETRIES,
        retry_delay=config.llm.LLM_RETRY_DELAY_SECONDS,
    )
