# ============================================================
# Agent Router Proxy FastAPI App
# ------------------------------------------------------------
# This app wires everything together:
#   - Streaming chat relay to OpenRouter
#   - HTML / React app generation with JSON extraction
#   - PDF text extraction
# ============================================================

import logging
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Any, Dict

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

# --- Local imports ---
from agent_router import __version__
from agent_router.documents import extract_pdf_text
from agent_router.errors import (
    ClientInputError,
    DocumentParseError,
    InternalProxyError,
    ProxyError,
    proxy_error_handler,
)
from agent_router.generate import CodeGenerator, load_profiles
from agent_router.logging_utils import configure_logging
from agent_router.settings import settings
from agent_router.stream import RelayResponse
from agent_router.upstream import ChatRequest, GenerateRequest, PdfRequest, UpstreamClient, UpstreamConfig

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


# ------------------------------------------------------------
# 🔧 Upstream client lifecycle
# ------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    client = UpstreamClient(UpstreamConfig.from_settings(settings))
    app.state.upstream = client
    logger.info("%s started (env=%s, upstream=%s)", settings.app_name, settings.ENV, settings.UPSTREAM_URL)
    try:
        yield
    finally:
        await client.aclose()


def get_upstream_client(request: Request) -> UpstreamClient:
    return request.app.state.upstream


@lru_cache(maxsize=1)
def generation_profiles():
    return load_profiles()


def get_generator(client: UpstreamClient = Depends(get_upstream_client)) -> CodeGenerator:
    return CodeGenerator(client, profiles=generation_profiles())


# ------------------------------------------------------------
# 🚀 FastAPI init
# ------------------------------------------------------------
app = FastAPI(title=settings.app_name, version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_exception_handler(ProxyError, proxy_error_handler)

INVALID_REQUEST_MESSAGES = {
    "/api/chat": "Invalid request. Required: model (string) and messages (array)",
    "/api/generate-html": "Invalid request. Required: prompt (string) and model (string)",
    "/api/generate-app": "Invalid request. Required: prompt (string) and model (string)",
    "/api/extract-pdf": "PDF base64 data is required",
}


@app.exception_handler(RequestValidationError)
async def invalid_request_handler(request: Request, exc: RequestValidationError):
    logger.warning("Invalid request to %s: %s", request.url.path, exc.errors())
    message = INVALID_REQUEST_MESSAGES.get(request.url.path, "Invalid request")
    return await proxy_error_handler(request, ClientInputError(message))


# ------------------------------------------------------------
# 🧭 Health check
# ------------------------------------------------------------
@app.get("/health")
def health():
    return {"status": "ok", "message": f"{settings.app_name} is running"}


# ------------------------------------------------------------
# 💬 Streaming chat relay
# ------------------------------------------------------------
@app.post("/api/chat")
async def chat(req: ChatRequest, client: UpstreamClient = Depends(get_upstream_client)):
    logger.info("Received request: model=%s messageCount=%d", req.model, len(req.messages))
    try:
        upstream = await client.open_stream(req.model, req.upstream_messages(), title=settings.CHAT_TITLE)
    except ProxyError:
        raise
    except Exception as e:
        logger.exception("Proxy error")
        raise InternalProxyError(str(e), error="Internal proxy error") from e
    return RelayResponse(upstream)


# ------------------------------------------------------------
# 🛠️ Code generation
# ------------------------------------------------------------
@app.post("/api/generate-html")
async def generate_html(req: GenerateRequest, generator: CodeGenerator = Depends(get_generator)) -> Dict[str, Any]:
    logger.info("Generating HTML/CSS with prompt: %s", req.prompt)
    try:
        return await generator.generate_html(req.prompt, req.model)
    except ProxyError:
        raise
    except Exception as e:
        logger.exception("Generate HTML error")
        raise InternalProxyError(str(e)) from e


@app.post("/api/generate-app")
async def generate_app(req: GenerateRequest, generator: CodeGenerator = Depends(get_generator)) -> Dict[str, Any]:
    logger.info("Generating app with prompt: %s", req.prompt)
    try:
        return await generator.generate_app(req.prompt, req.model)
    except ProxyError:
        raise
    except Exception as e:
        logger.exception("Generate app error")
        raise InternalProxyError(str(e)) from e


# ------------------------------------------------------------
# 📄 PDF text extraction (CPU-bound: runs in the threadpool)
# ------------------------------------------------------------
@app.post("/api/extract-pdf")
def extract_pdf(req: PdfRequest) -> Dict[str, Any]:
    try:
        return extract_pdf_text(req.pdfBase64).to_dict()
    except ProxyError:
        raise
    except Exception as e:
        logger.exception("PDF extraction error")
        raise DocumentParseError(str(e)) from e
