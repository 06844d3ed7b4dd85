"""
FastAPI backend for Base Studio.
Run locally: uvicorn app:app --reload

/api/generate is the remote generation service (LLM-backed).
/api/build renders a document from explicit fields.
/api/instruct, /api/reset and /api/templates drive one local session.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Union

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from bases.builder import BuildError, BuildSpec, FormulaField, SummaryField, build_document, split_list
from bases.config import load_settings
from bases.main import build_orchestrator
from llm.openai_client import make_openai_base_llm, load_api_key

logger = logging.getLogger(__name__)
settings = load_settings()
logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))


# =============================================================================
# FASTAPI APP
# =============================================================================
app = FastAPI(
    title="Base Studio",
    description="Natural language to Obsidian Bases documents",
    version="1.0.0"
)

# One process-wide session: a single current-document buffer.
orchestrator = build_orchestrator(settings)


# =============================================================================
# MODELS
# =============================================================================
class GenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    instruction: Optional[str] = None
    current_document: Optional[str] = Field(default=None, alias="currentDocument")


class GenerateResponse(BaseModel):
    document: str


class InstructRequest(BaseModel):
    instruction: str


class InstructResponse(BaseModel):
    success: bool
    document: Optional[str] = None
    route: Optional[str] = None
    template_id: Optional[str] = None
    entities: Optional[Dict[str, Any]] = None
    applied: List[str] = []
    error: Optional[str] = None


class FormulaModel(BaseModel):
    name: str
    expression: str


class SummaryModel(BaseModel):
    property: str
    summary: str


class BuildRequest(BaseModel):
    tags: Union[str, List[str]] = ""
    folder: Optional[str] = None
    logic: str = "and"
    formulas: List[FormulaModel] = []
    properties: List[str] = ["file.name"]
    custom_properties: Union[str, List[str]] = ""
    view_type: str = "table"
    view_name: Optional[str] = None
    limit: Optional[int] = None
    sort_by: Optional[str] = None
    sort_direction: Optional[str] = None
    group_by: Optional[str] = None
    group_direction: Optional[str] = None
    summaries: List[SummaryModel] = []


class TemplateInfo(BaseModel):
    id: str
    label: str
    description: str


# =============================================================================
# REMOTE GENERATION SERVICE
# =============================================================================
def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.post("/api/generate", response_model=GenerateResponse)
async def generate(req: GenerateRequest):
    """Generate or update a document with the LLM."""
    if not req.instruction or not req.instruction.strip():
        return _error(400, "Missing instruction")

    if not load_api_key():
        return _error(500, "API key not configured. Set OPENAI_API_KEY in the environment or .env.")

    try:
        llm = make_openai_base_llm(settings.openai_model)
        document = llm(req.instruction.strip(), req.current_document)
    except Exception:  # noqa: BLE001
        logger.exception("LLM generation failed")
        return _error(502, "AI service error. Please try again.")

    if not document:
        return _error(502, "AI service returned an empty document.")
    return GenerateResponse(document=document)


# =============================================================================
# STRUCTURED BUILDER
# =============================================================================
@app.post("/api/build", response_model=GenerateResponse)
async def build(req: BuildRequest):
    """Build a document from explicit fields; no model involved."""
    spec = BuildSpec(
        tags=split_list(req.tags),
        folder=req.folder,
        logic=req.logic,
        formulas=[FormulaField(f.name, f.expression) for f in req.formulas],
        properties=req.properties,
        custom_properties=split_list(req.custom_properties),
        view_type=req.view_type,
        view_name=req.view_name,
        limit=req.limit,
        sort_by=req.sort_by,
        sort_direction=req.sort_direction,
        group_by=req.group_by,
        group_direction=req.group_direction,
        summaries=[SummaryField(s.property, s.summary) for s in req.summaries],
    )
    try:
        document = build_document(spec)
    except BuildError as exc:
        return _error(400, str(exc))
    return GenerateResponse(document=document)


# =============================================================================
# LOCAL SESSION
# =============================================================================
@app.post("/api/instruct", response_model=InstructResponse)
async def instruct(req: InstructRequest):
    """Apply one instruction to the session's document."""
    result = orchestrator.submit(req.instruction)
    return InstructResponse(success=result.get("error") is None, **result)


@app.post("/api/reset")
async def reset():
    orchestrator.reset()
    return {"success": True}


@app.get("/api/templates", response_model=List[TemplateInfo])
async def list_templates():
    return [
        TemplateInfo(id=template_id, label=t.label, description=t.description)
        for template_id, t in orchestrator.catalog.templates.items()
    ]


@app.post("/api/templates/{template_id}/select", response_model=TemplateInfo)
async def select_template(template_id: str):
    """Reset the session and return the template's description to submit."""
    try:
        description = orchestrator.select_template(template_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown template '{template_id}'")
    label = orchestrator.catalog.templates[template_id].label
    return TemplateInfo(id=template_id, label=label, description=description)


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "Base Studio", "mode": orchestrator.mode}


# =============================================================================
# MAIN
# =============================================================================
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
