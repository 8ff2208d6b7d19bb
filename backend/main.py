"""Page quality API: FastAPI app and endpoints."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import config
import database
from analyzer import AnalysisServices, analyze as run_analysis, default_services, set_default_services
from diagnostics import keyword_report, word_report
from errors import AnalysisError
from models import ContentRejection
from schemas import (
    AnalyzeRequest,
    ClearResponse,
    FastAnalyzeRequest,
    KeywordDiagnostics,
    StoreHealth,
    WordDiagnostics,
)

config.configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Page Quality API",
    description="Explainable 0-100 quality score for web pages",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def startup() -> None:
    database.init_db()
    purged = database.purge_expired_keywords(config.KEYWORD_CACHE_MAX_AGE_DAYS)
    if purged:
        logger.info("Purged %d expired keyword records", purged)
    app.state.services = default_services()
    set_default_services(app.state.services)


@app.on_event("shutdown")
def shutdown() -> None:
    services = getattr(app.state, "services", None)
    if services is not None:
        services.cache.clear()
        services.fast_cache.clear()


def _services() -> AnalysisServices:
    services = getattr(app.state, "services", None)
    if services is None:
        services = default_services()
        app.state.services = services
    return services


# --- Error handlers ---


@app.exception_handler(AnalysisError)
def analysis_error_handler(request: Request, exc: AnalysisError) -> JSONResponse:
    logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    content = {"success": False, "error": "Internal server error"}
    if config.is_development():
        content["message"] = str(exc)
        content["details"] = {"type": type(exc).__name__}
    return JSONResponse(status_code=500, content=content)


def _respond(url: str, fast: bool, llm: bool):
    result = run_analysis(url, fast=fast, llm=llm, services=_services())
    if isinstance(result, ContentRejection):
        return JSONResponse(status_code=result.status_code, content=result.to_dict())
    return result


# --- Analysis ---


@app.get("/analyze")
def analyze_get(url: str = "", fast: bool = False, llm: bool = False):
    """Score a page. Cached per (url, fast, llm) for the configured TTL."""
    return _respond(url, fast, llm)


@app.post("/analyze")
def analyze_post(body: AnalyzeRequest):
    return _respond(body.url, body.fast, body.llm)


@app.get("/analyze/fast")
def analyze_fast_get(url: str = "", fast: bool = True, llm: bool = False):
    """Four-module analysis without network lookups; fast=false runs the full path."""
    return _respond(url, fast, llm)


@app.post("/analyze/fast")
def analyze_fast_post(body: FastAnalyzeRequest):
    return _respond(body.url, body.fast, body.llm)


# --- Diagnostics ---


@app.get("/diagnostic/keywords", response_model=KeywordDiagnostics)
def diagnostic_keywords() -> KeywordDiagnostics:
    return keyword_report()


@app.get("/diagnostic/words", response_model=WordDiagnostics)
def diagnostic_words() -> WordDiagnostics:
    return word_report()


@app.get("/diagnostic/health", response_model=StoreHealth)
def diagnostic_health() -> StoreHealth:
    services = _services()
    return StoreHealth(
        status="ok",
        keyword_count=database.count_keywords(),
        word_count=database.count_words(),
        analysis_cache=services.cache.stats(),
        fast_analysis_cache=services.fast_cache.stats(),
    )


@app.delete("/diagnostic/keywords/clear", response_model=ClearResponse)
def diagnostic_clear() -> ClearResponse:
    deleted = database.clear_frequency_data()
    logger.info("Cleared frequency data: %s", deleted)
    return ClearResponse(**deleted)


@app.get("/health")
def health() -> dict:
    """Health check for deployment."""
    return {"status": "ok"}
