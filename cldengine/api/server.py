"""
CLD Engine: Extraction API Server
=================================

Stateless HTTP surface over the causal pipeline.
Every request runs a fresh, isolated pipeline; nothing is persisted and
no exports are written.

Endpoints:
- GET  /api/v1/health          -> liveness
- GET  /api/v1/config/default  -> effective default configuration
- POST /api/v1/extract         -> full artifact bundle

Usage:
    uvicorn cldengine.api.server:app --reload
"""
from typing import Any, Dict, List, Optional
import re

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from ..config import DEFAULT_CONFIG
from ..contracts.base import ConfigurationError, InputValidationError, NoCausalRelationshipsError
from ..pipeline import PipelineOptions, require_causal_structure, run_pipeline


# =============================================================================
# REQUEST MODELS
# =============================================================================

class DocumentModel(BaseModel):
    id: str
    text: str
    title: Optional[str] = None
    sourceUri: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ExtractRequest(BaseModel):
    documents: List[DocumentModel]
    config: Optional[Dict[str, Any]] = None
    maxDepth: Optional[int] = None
    requireEdges: bool = False
    includeAudit: bool = False


_CAMEL_BOUNDARY = re.compile(r'(?<!^)(?=[A-Z])')

# Keys of these sections are user data (theme and variable labels)
_LABEL_SECTIONS = ('theme_to_variable_map', 'variable_synonyms')


def _snake(key: str) -> str:
    return _CAMEL_BOUNDARY.sub('_', key).lower()


def normalize_config_keys(config: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    Accept camelCase config keys (`pruneThreshold`) alongside snake_case.

    Top-level keys and the keys of `cue_lexicon` and `confidence` are
    converted; label tables pass through untouched.
    """
    if not config:
        return config
    normalized = {}
    for key, value in config.items():
        name = _snake(key)
        if name not in _LABEL_SECTIONS and isinstance(value, dict):
            value = {_snake(k): v for k, v in value.items()}
        normalized[name] = value
    return normalized


# =============================================================================
# APP
# =============================================================================

app = FastAPI(
    title="CLD Engine API",
    version="0.1.0",
    description="Deterministic causal loop diagram extraction",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


@app.get("/api/v1/health")
async def health_check():
    """System status."""
    return {"status": "ok"}


@app.get("/api/v1/config/default")
async def get_default_config():
    return DEFAULT_CONFIG.to_dict()


@app.post("/api/v1/extract")
def extract(request: ExtractRequest):
    """
    Run the pipeline over the posted documents.

    `config` keys may be camelCase or snake_case. Keys inside
    theme_to_variable_map and variable_synonyms are labels and are used
    as given.

    400: invalid configuration or documents
    422: requireEdges set and no causal relationships were found
    """
    documents = [
        {
            'id': doc.id,
            'text': doc.text,
            'title': doc.title,
            'sourceUri': doc.sourceUri,
            'metadata': doc.metadata,
        }
        for doc in request.documents
    ]
    try:
        overrides = normalize_config_keys(request.config)
        options = PipelineOptions(overrides=overrides, max_loop_depth=request.maxDepth)
        artifacts = run_pipeline(documents, options)
    except (ConfigurationError, InputValidationError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    if request.requireEdges:
        try:
            require_causal_structure(artifacts)
        except NoCausalRelationshipsError as e:
            raise HTTPException(status_code=422, detail=str(e))

    return artifacts.to_dict(include_audit=request.includeAudit)
