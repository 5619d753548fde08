#!/usr/bin/env python3
"""
Smart Scraper REST API Server

FastAPI-based studio API: a renderer creates a session for a page, forwards
element selections and reads back fields, rows and the highlight selector.
"""

import logging
import time
from typing import Any, Dict, Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field
import uvicorn

from config import config
from dom import PARSERS
from scraper.export import ExportFormat
from scraper.reconciler import DuplicateChoice
from services.scrape_session import ScrapeSession

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

logging.getLogger('selenium').setLevel(logging.WARNING)
logging.getLogger('urllib3').setLevel(logging.WARNING)


# Request/Response Models
class SessionRequest(BaseModel):
    url: Optional[str] = Field(default=None, description="URL to render and scrape")
    html: Optional[str] = Field(default=None, description="HTML content to scrape")
    base_url: str = Field(default="", description="Base URL for relative links in html")
    parser: str = Field(default=config.HTML_PARSER, description="Tree adapter: soup or lxml")
    wait_for_element: Optional[str] = Field(default=None, description="CSS selector to wait for")


class SelectRequest(BaseModel):
    query: str = Field(..., description="CSS selector or XPath of the clicked element")
    confirm_switch: bool = Field(True, description="Accept replacing the current list")
    on_duplicate: DuplicateChoice = Field(DuplicateChoice.UPDATE,
                                          description="Update or add when the selector is already used")


class ModeRequest(BaseModel):
    selecting: bool = Field(..., description="Whether clicks are turned into selections")


class RenameRequest(BaseModel):
    name: str = Field(..., min_length=1, description="New display name")


class CleanRequest(BaseModel):
    field_id: str = Field(..., description="Column to clean")
    instruction: Optional[str] = Field(default=None, description="Cleaning instruction")


class APIResponse(BaseModel):
    success: bool
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    processing_time: Optional[float] = None
    timestamp: str = Field(default_factory=lambda: str(time.time()))


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str = "1.0.0"
    timestamp: str = Field(default_factory=lambda: str(time.time()))
    services: Dict[str, str] = {}


# In-memory session store (managed by lifespan)
sessions: Dict[str, ScrapeSession] = {}
services: Dict[str, Any] = {}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle"""
    logger.info("Starting Smart Scraper API server...")
    yield
    logger.info(f"Shutting down Smart Scraper API server, dropping {len(sessions)} sessions")
    sessions.clear()


app = FastAPI(
    title="Smart Scraper API",
    description="Click-to-scrape list extraction with AI column cleaning",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Dependencies
def get_session(session_id: str) -> ScrapeSession:
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    return session


def get_text_cleaner():
    """AI text cleaner, created on first use"""
    if "text_cleaner" not in services:
        from ai.text_cleaner import AITextCleaner

        try:
            services["text_cleaner"] = AITextCleaner()
        except ValueError as e:
            raise HTTPException(status_code=503, detail=f"AI unavailable: {e}")
    return services["text_cleaner"]


# Endpoints
@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check():
    """Health check endpoint"""
    service_status = {}

    try:
        config.validate()
        service_status["configuration"] = "healthy"
    except ValueError:
        service_status["configuration"] = "unhealthy"

    service_status["ai"] = "configured" if config.ai_configured else "not configured"
    service_status["sessions"] = str(len(sessions))

    return HealthResponse(services=service_status)


@app.get("/config", tags=["System"])
async def get_config():
    """Get current configuration (excluding sensitive data)"""
    return APIResponse(
        success=True,
        data={
            "max_ancestor_depth": config.MAX_ANCESTOR_DEPTH,
            "semantic_class_prefix": config.SEMANTIC_CLASS_PREFIX,
            "html_parser": config.HTML_PARSER,
            "ai_model": config.AI_MODEL,
            "default_cleaning_instruction": config.DEFAULT_CLEANING_INSTRUCTION,
            "log_level": config.LOG_LEVEL
        }
    )


@app.post("/sessions", response_model=APIResponse, tags=["Sessions"])
def create_session(request: SessionRequest):
    """Parse HTML (or render a URL) and open a scraping session"""
    start_time = time.time()

    if not request.html and not request.url:
        raise HTTPException(status_code=400, detail="Either html or url is required")
    if request.parser not in PARSERS:
        raise HTTPException(status_code=400, detail=f"parser must be one of {PARSERS}")

    try:
        if request.html:
            session = ScrapeSession.from_html(request.html, request.base_url, request.parser)
        else:
            session = ScrapeSession.from_url(request.url, request.parser, request.wait_for_element)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=502, detail=str(e))

    sessions[session.id] = session
    logger.info(f"Created session {session.id}")

    return APIResponse(success=True, data=session.summary(),
                       processing_time=time.time() - start_time)


@app.get("/sessions/{session_id}", response_model=APIResponse, tags=["Sessions"])
def get_session_state(session: ScrapeSession = Depends(get_session)):
    """Current list, fields, rows and highlight selector"""
    return APIResponse(success=True, data=session.summary())


@app.delete("/sessions/{session_id}", response_model=APIResponse, tags=["Sessions"])
def delete_session(session: ScrapeSession = Depends(get_session)):
    sessions.pop(session.id, None)
    return APIResponse(success=True, data={"session_id": session.id})


@app.post("/sessions/{session_id}/mode", response_model=APIResponse, tags=["Selection"])
def set_mode(request: ModeRequest, session: ScrapeSession = Depends(get_session)):
    """Turn selection mode on or off"""
    session.reconciler.set_selection_mode(request.selecting)
    return APIResponse(success=True, data={"selecting": session.reconciler.selecting})


@app.post("/sessions/{session_id}/select", response_model=APIResponse, tags=["Selection"])
def select_element(request: SelectRequest, session: ScrapeSession = Depends(get_session)):
    """Forward one element selection to the session"""
    start_time = time.time()

    result = session.click(
        request.query,
        confirm_switch=lambda current, proposed: request.confirm_switch,
        resolve_duplicate=lambda existing, candidate: request.on_duplicate
    )

    data = session.summary()
    data["outcome"] = result.outcome.value
    data["field"] = result.field.model_dump(mode='json') if result.field else None

    return APIResponse(
        success=result.changed,
        data=data,
        error=None if result.changed else result.message,
        processing_time=time.time() - start_time
    )


@app.delete("/sessions/{session_id}/fields/{field_id}", response_model=APIResponse, tags=["Fields"])
def remove_field(field_id: str, session: ScrapeSession = Depends(get_session)):
    if not session.reconciler.remove_field(field_id):
        raise HTTPException(status_code=404, detail=f"Field '{field_id}' not found")
    return APIResponse(success=True, data=session.summary())


@app.patch("/sessions/{session_id}/fields/{field_id}", response_model=APIResponse, tags=["Fields"])
def rename_field(field_id: str, request: RenameRequest,
                 session: ScrapeSession = Depends(get_session)):
    if session.reconciler.rename_field(field_id, request.name) is None:
        raise HTTPException(status_code=404, detail=f"Field '{field_id}' not found")
    return APIResponse(success=True, data=session.summary())


@app.post("/sessions/{session_id}/clean", response_model=APIResponse, tags=["Fields"])
def clean_column(request: CleanRequest, session: ScrapeSession = Depends(get_session),
                 text_cleaner=Depends(get_text_cleaner)):
    """Clean one column with AI; the column is left unchanged on failure"""
    if session.reconciler.get_field(request.field_id) is None:
        raise HTTPException(status_code=404, detail=f"Field '{request.field_id}' not found")

    result = session.clean(text_cleaner, request.field_id, request.instruction)

    return APIResponse(
        success=result.success,
        data={"field_id": result.field_id, "values_changed": result.values_changed,
              "column": session.reconciler.column(request.field_id)},
        error=None if result.success else f"AI Cleaning Failed: {result.error}",
        processing_time=result.processing_time
    )


@app.get("/sessions/{session_id}/export", tags=["Export"])
def export_rows(format: ExportFormat = ExportFormat.CSV,
                session: ScrapeSession = Depends(get_session)):
    content = session.export(format)
    media_type = "text/csv" if format == ExportFormat.CSV else "application/json"
    filename = f"{config.EXPORT_BASENAME}.{format.value}"
    return PlainTextResponse(content, media_type=media_type,
                             headers={"Content-Disposition": f'attachment; filename="{filename}"'})


# Error handlers
@app.exception_handler(404)
async def not_found_handler(request, exc):
    detail = getattr(exc, "detail", None) or "Endpoint not found"
    return JSONResponse(status_code=404, content={"success": False, "error": detail})


@app.exception_handler(500)
async def internal_error_handler(request, exc):
    logger.error(f"Internal server error: {exc}")
    return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})


if __name__ == "__main__":
    uvicorn.run(
        "api:app",
        host=config.API_HOST,
        port=config.API_PORT,
        reload=True,
        log_level=config.LOG_LEVEL.lower()
    )
