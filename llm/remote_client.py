"""
HTTP client for a remote base-generation service.
Contract: POST {instruction, currentDocument?} -> {document} on success,
{error} with a non-success status otherwise. One attempt, no retry.
"""
from __future__ import annotations
import logging
from typing import Callable, Optional

import requests

from bases.document import strip_markdown_fences

logger = logging.getLogger(__name__)

DocumentGenerator = Callable[[str, Optional[str]], str]


class GenerationError(Exception):
    """Raised when the remote generator is unreachable or reports a failure."""


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"Generation service returned HTTP {response.status_code}."


def make_remote_generator(url: str, timeout: Optional[float] = None) -> DocumentGenerator:
    """Return a callable(instruction, current_document) -> document text."""
    session = requests.Session()

    def _generate(instruction: str, current_document: Optional[str] = None) -> str:
        payload = {"instruction": instruction}
        if current_document:
            payload["currentDocument"] = current_document
        try:
            response = session.post(url, json=payload, timeout=timeout)
        except requests.RequestException as exc:
            raise GenerationError(f"Generation service unreachable: {exc}") from exc

        if not response.ok:
            raise GenerationError(_error_message(response))

        try:
            body = response.json()
        except ValueError as exc:
            raise GenerationError("Generation service returned invalid JSON.") from exc
        document = ""
        if isinstance(body, dict):
            document = strip_markdown_fences(str(body.get("document") or ""))
        if not document:
            raise GenerationError("Generation service returned an empty document.")
        return document

    return _generate


__all__ = ["make_remote_generator", "GenerationError", "DocumentGenerator"]
