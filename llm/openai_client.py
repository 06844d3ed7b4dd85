"""
OpenAI client wrapper for base document generation.
Reads API key from environment or .env file at repo root.
"""
from __future__ import annotations
import time
import logging
from typing import Callable, Optional

from openai import OpenAI

from bases.config import read_env
from bases.document import strip_markdown_fences
from llm.prompt_templates import BASES_SYSTEM_PROMPT, UPDATE_PROMPT

logger = logging.getLogger(__name__)

MAX_RETRIES = 2
RETRY_DELAY_SECONDS = 1

DocumentLLM = Callable[[str, Optional[str]], str]


def load_api_key() -> str | None:
    """Load OPENAI_API_KEY from environment or .env."""
    return read_env("OPENAI_API_KEY")


def _call_with_retry(fn, max_retries=MAX_RETRIES, delay=RETRY_DELAY_SECONDS):
    """Call fn() with retry on transient OpenAI errors (rate limit, timeout, server error)."""
    from openai import RateLimitError, APITimeoutError, APIConnectionError, InternalServerError

    last_exc = None
    for attempt in range(max_retries + 1):
        try:
            return fn()
        except (RateLimitError, APITimeoutError, APIConnectionError, InternalServerError) as exc:
            last_exc = exc
            if attempt < max_retries:
                wait = delay * (2 ** attempt)
                logger.warning("OpenAI API error (attempt %d/%d), retrying in %.1fs: %s",
                               attempt + 1, max_retries + 1, wait, exc)
                time.sleep(wait)
            else:
                logger.error("OpenAI API error after %d attempts: %s", max_retries + 1, exc)
                raise
    raise last_exc


def build_user_message(instruction: str, current_document: Optional[str] = None) -> str:
    if not current_document:
        return instruction
    return UPDATE_PROMPT.format(document=current_document, instruction=instruction)


def make_openai_base_llm(model: str = "gpt-4o-mini") -> DocumentLLM:
    """
    Return a callable(instruction, current_document) -> document text
    using OpenAI Chat Completions. Code fences are stripped from the reply.
    """
    api_key = load_api_key()
    if not api_key:
        raise RuntimeError("OPENAI_API_KEY not set (env or .env).")

    client = OpenAI(api_key=api_key, timeout=30.0)

    def _llm(instruction: str, current_document: Optional[str] = None) -> str:
        def _call():
            return client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": BASES_SYSTEM_PROMPT},
                    {"role": "user", "content": build_user_message(instruction, current_document)},
                ],
                temperature=0,
                max_tokens=4096,
            )
        completion = _call_with_retry(_call)
        return strip_markdown_fences(completion.choices[0].message.content or "")

    return _llm


__all__ = ["make_openai_base_llm", "build_user_message", "load_api_key"]
