import asyncio
import logging
import os
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator
from starlette.exceptions import HTTPException as StarletteHTTPException

from builder_api.evaluate import evaluate_site
from builder_api.extract import extract_content
from builder_api.fetching import Fetcher, HttpxFetcher
from builder_api.knowledge import design_guidelines, load_knowledge_base
from builder_api.prompts import build_lovable_url, build_prompt
from builder_api.search import search_similar_sites
from builder_api.sessions import SessionStore


if not logging.getLogger().handlers:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

log = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}
SIMILAR_SITES_HEADER = "Similar sites for inspiration:"
REQUEST_ID_HEADER = "X-Request-ID"


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.knowledge_base = load_knowledge_base()
    app.state.sessions = SessionStore()
    app.state.fetcher = HttpxFetcher()
    log.info("startup: knowledge base keys=%s", sorted(app.state.knowledge_base))
    try:
        yield
    finally:
        log.info("shutdown: dropping %d sessions", len(app.state.sessions))
        app.state.sessions.clear()


app = FastAPI(lifespan=lifespan)


@app.middleware("http")
async def cors_headers(request: Request, call_next):
    # Preflight for any path is answered here without routing
    if request.method == "OPTIONS":
        response = Response(status_code=204)
    else:
        response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    return response


@app.middleware("http")
async def trace_request(request: Request, call_next):
    # Clients may correlate their own calls by sending X-Request-ID
    rid = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    request.state.request_id = rid
    request.state.session_id = None
    started = time.perf_counter()
    status = 500
    try:
        response = await call_next(request)
        status = response.status_code
        response.headers[REQUEST_ID_HEADER] = rid
        return response
    finally:
        log.info(
            "request: rid=%s %s %s -> %s sid=%s dur_ms=%.1f",
            rid,
            request.method,
            request.url.path,
            status,
            getattr(request.state, "session_id", None) or "-",
            (time.perf_counter() - started) * 1000,
        )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code in (404, 405):
        return JSONResponse(status_code=404, content={"error": "Not found"})
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


class _LenientBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Optional[str]:
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        return None


class GenerateRequest(_LenientBody):
    description: Optional[str] = Field(default=None, description="What the user wants built")
    url: Optional[str] = Field(default=None, description="Optional reference page to summarise")
    session_id: Optional[str] = Field(default=None, alias="sessionId")


class FeedbackRequest(_LenientBody):
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    feedback: Optional[str] = None


class EvaluateRequest(_LenientBody):
    url: Optional[str] = None


async def _read_json(request: Request) -> Dict[str, Any]:
    """Request body as a dict; malformed or non-object JSON counts as {}."""
    try:
        data = await request.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def get_fetcher(request: Request) -> Fetcher:
    return request.app.state.fetcher


def get_sessions(request: Request) -> SessionStore:
    return request.app.state.sessions


def get_knowledge_base(request: Request) -> Dict[str, Any]:
    return request.app.state.knowledge_base


def _combine_sources(page_summary: str, similar_sites: str) -> str:
    parts = []
    if page_summary:
        parts.append(page_summary)
    if similar_sites:
        parts.append(f"{SIMILAR_SITES_HEADER}\n{similar_sites}")
    return "\n".join(parts)


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/api/knowledge-base")
def knowledge_base_endpoint(kb: Dict[str, Any] = Depends(get_knowledge_base)):
    return JSONResponse(kb)


@app.post("/api/generate")
async def generate_endpoint(
    request: Request,
    fetcher: Fetcher = Depends(get_fetcher),
    sessions: SessionStore = Depends(get_sessions),
    kb: Dict[str, Any] = Depends(get_knowledge_base),
):
    req = GenerateRequest.model_validate(await _read_json(request))
    description = req.description or ""

    if req.url:
        page_summary, similar_sites = await asyncio.gather(
            extract_content(fetcher, req.url),
            search_similar_sites(fetcher, description),
        )
    else:
        page_summary = ""
        similar_sites = await search_similar_sites(fetcher, description)
    extracted = _combine_sources(page_summary, similar_sites)

    # No awaits past this point: the session update must not interleave
    sid, session = sessions.get_or_create(req.session_id)
    request.state.session_id = sid
    session.description = description
    session.extracted_content = extracted
    prompt = build_prompt(session.description, session.extracted_content, design_guidelines(kb), session.feedback)
    log.info(
        "generate: sid=%s source_url=%s summary_chars=%d feedback=%d",
        sid,
        bool(req.url),
        len(extracted),
        len(session.feedback),
    )
    payload: Dict[str, Any] = {"sessionId": sid, "buildUrl": build_lovable_url(prompt)}
    if extracted:
        payload["summary"] = extracted
    return JSONResponse(payload)


@app.post("/api/feedback")
async def feedback_endpoint(
    request: Request,
    sessions: SessionStore = Depends(get_sessions),
    kb: Dict[str, Any] = Depends(get_knowledge_base),
):
    req = FeedbackRequest.model_validate(await _read_json(request))
    session = sessions.get(req.session_id)
    request.state.session_id = req.session_id
    if session is None:
        log.info("feedback: rejected unknown sid=%r", req.session_id)
        return JSONResponse(status_code=400, content={"error": "Invalid session"})
    session.feedback.append(req.feedback or "")
    prompt = build_prompt(session.description, session.extracted_content, design_guidelines(kb), session.feedback)
    log.info("feedback: sid=%s items=%d", req.session_id, len(session.feedback))
    return JSONResponse({"buildUrl": build_lovable_url(prompt)})


@app.post("/api/evaluate")
async def evaluate_endpoint(request: Request, fetcher: Fetcher = Depends(get_fetcher)):
    req = EvaluateRequest.model_validate(await _read_json(request))
    if not req.url:
        return JSONResponse(status_code=400, content={"error": "Missing url"})
    result = await evaluate_site(fetcher, req.url)
    return JSONResponse(result.model_dump())


def run() -> None:
    import uvicorn

    uvicorn.run(
        "builder_api.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3001") or 3001),
        log_level=os.getenv("LOG_LEVEL", "INFO").lower(),
    )


if __name__ == "__main__":
    run()
