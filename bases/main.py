"""
Orchestrator and CLI entry point for Base Studio.
Routing: exemplar description -> exemplar verbatim; otherwise, with no
document yet, classifier-selected exemplar or synthesized document; with a
document, patch it. In remote mode the collaborator replaces local
synthesis and patching.
"""
from __future__ import annotations
import sys
import time
import logging
from typing import Any, Dict, List, Optional

from .classifier import KeywordClassifier
from .config import Settings, load_settings
from .extractor import Entities, extract_entities
from .patcher import patch_document
from .synthesizer import synthesize_document
from .templates import DEFAULT_CATALOG, Catalog
from .document import strip_markdown_fences
from llm.openai_client import make_openai_base_llm, load_api_key
from llm.remote_client import DocumentGenerator, GenerationError, make_remote_generator

logger = logging.getLogger(__name__)


class Orchestrator:
    """Owns the single current-document buffer for one session."""

    def __init__(
        self,
        catalog: Catalog = DEFAULT_CATALOG,
        classifier: Optional[KeywordClassifier] = None,
        generator: Optional[DocumentGenerator] = None,
        mode: str = "local",
    ):
        self.catalog = catalog
        self.classifier = classifier or KeywordClassifier(catalog.keywords)
        self.generator = generator
        self.mode = mode if generator else "local"
        self.document: Optional[str] = None
        self.selected_template: Optional[str] = None

    @property
    def has_document(self) -> bool:
        return self.document is not None

    def reset(self) -> None:
        """Discard the current document."""
        self.document = None
        self.selected_template = None

    def select_template(self, template_id: str) -> str:
        """Start over with a card template; returns its description to submit."""
        template = self.catalog.templates[template_id]
        self.reset()
        self.selected_template = template_id
        return template.description

    def _response(
        self,
        route: Optional[str],
        error: Optional[str] = None,
        template_id: Optional[str] = None,
        entities: Optional[Entities] = None,
        applied: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        return {
            "document": self.document,
            "route": route,
            "template_id": template_id,
            "entities": entities.to_dict() if entities else None,
            "applied": applied or [],
            "error": error,
        }

    def submit(self, instruction: str) -> Dict[str, Any]:
        """Process one instruction and return a structured response."""
        text = (instruction or "").strip()
        if not text:
            return self._response(None, error="Instruction is empty.")

        t0 = time.perf_counter()
        logger.info("Instruction received: %s", text[:200])

        if self.document is None:
            template_id = self.catalog.match_description(text)
            if template_id:
                response = self._commit("template", self.catalog.templates[template_id].document,
                                        template_id=template_id)
                return self._log_done(response, t0)

        if self.mode == "remote":
            return self._log_done(self._run_remote(text), t0)

        if self.document is None:
            category = self.classifier.classify(text)
            document = self.catalog.document_for(category) if category else None
            if document is not None:
                response = self._commit("keyword", document, template_id=category)
            else:
                entities = extract_entities(text)
                response = self._commit("synthesized", synthesize_document(entities),
                                        entities=entities)
        else:
            new_document, applied = patch_document(self.document, text)
            if not applied:
                logger.debug("No edits applied for: %s", text[:200])
            response = self._commit("patched", new_document, applied=applied)

        return self._log_done(response, t0)

    def _commit(self, route: str, document: str, **kwargs) -> Dict[str, Any]:
        self.document = document
        self.selected_template = None
        return self._response(route, **kwargs)

    def _run_remote(self, text: str) -> Dict[str, Any]:
        try:
            raw = self.generator(text, self.document)
        except GenerationError as exc:
            logger.exception("Remote generation failed")
            return self._response("remote", error=str(exc))
        except Exception as exc:  # noqa: BLE001
            logger.exception("Remote generation failed")
            return self._response("remote", error=f"Failed to generate: {exc}")

        document = strip_markdown_fences(raw or "")
        if not document:
            return self._response("remote", error="Generator returned an empty document.")
        return self._commit("remote", document)

    @staticmethod
    def _log_done(response: Dict[str, Any], t0: float) -> Dict[str, Any]:
        status = "error" if response.get("error") else "ok"
        logger.info(
            "Instruction complete: route=%s status=%s applied=%s time=%.3fs",
            response.get("route"), status, ",".join(response.get("applied") or []) or "-",
            time.perf_counter() - t0,
        )
        return response


def build_orchestrator(settings: Optional[Settings] = None) -> Orchestrator:
    """Create an orchestrator wired to the configured generator, if any."""
    settings = settings or load_settings()
    generator: Optional[DocumentGenerator] = None
    if settings.remote:
        if settings.generator_url:
            generator = make_remote_generator(settings.generator_url)
        elif load_api_key():
            try:
                generator = make_openai_base_llm(settings.openai_model)
            except Exception:  # noqa: BLE001
                logger.exception("Failed to initialize LLM client")
        if generator is None:
            logger.warning("Remote generation requested but unavailable; using local mode")
    return Orchestrator(generator=generator, mode=settings.generation_mode)


HELP = """Commands:
  :templates      list exemplar templates
  :select <id>    start from a template
  :reset          discard the current document
  :quit           exit"""


def main() -> int:
    settings = load_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    orchestrator = build_orchestrator(settings)

    first = " ".join(sys.argv[1:]) if len(sys.argv) > 1 else None
    if first:
        response = orchestrator.submit(first)
        print(response.get("error") or response["document"])
        return 1 if response.get("error") else 0

    print(HELP)
    while True:
        prompt = "Update Base > " if orchestrator.has_document else "Base Studio > "
        try:
            line = input(prompt).strip()
        except (KeyboardInterrupt, EOFError):
            return 0
        if not line:
            continue
        if line in (":quit", ":q"):
            return 0
        if line == ":reset":
            orchestrator.reset()
            print("Reset.")
            continue
        if line == ":templates":
            for template_id, template in orchestrator.catalog.templates.items():
                print(f"{template_id:10} {template.label}")
            continue
        if line.startswith(":select"):
            template_id = line[len(":select"):].strip()
            try:
                line = orchestrator.select_template(template_id)
            except KeyError:
                print(f"Unknown template '{template_id}'.")
                continue
            print(f"> {line}")

        response = orchestrator.submit(line)
        if response.get("error"):
            print("Error:", response["error"])
            continue
        print(f"\n--- Document ({response['route']}) ---")
        print(response["document"])
        if response.get("applied"):
            print("\n--- Applied ---")
            print(", ".join(response["applied"]))
        print()


if __name__ == "__main__":
    raise SystemExit(main())
