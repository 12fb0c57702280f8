"""
FastAPI app entry point aggregating the routers under toomanytabs/routes.
Run with `uvicorn toomanytabs.api:app --host 0.0.0.0 --port 9999` or `tmt serve`.
"""
from __future__ import annotations

import ipaddress
import logging
import os
import socket
from contextlib import asynccontextmanager
from urllib.parse import urlsplit

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import Settings, load_settings
from .context import AppContext
from .logs import setup_logging
from .models import IpAddr
from .storage import EntryStore, build_store

logger = logging.getLogger(__name__)


def local_ip() -> IpAddr:
    """Address of the interface that routes outward; no packet is sent."""
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
        s.connect(("10.254.254.254", 1))
        return ipaddress.ip_address(s.getsockname()[0])


def is_web_url(value) -> bool:
    """Only http(s) urls are rendered as links."""
    if not isinstance(value, str):
        return False
    try:
        scheme = urlsplit(value.strip()).scheme
    except ValueError:
        return False
    return scheme.lower() in ("http", "https")


def load_templates(directory: str, port: int) -> Jinja2Templates:
    if not os.path.isdir(directory):
        raise FileNotFoundError(f"template directory not found: {directory}")
    templates = Jinja2Templates(directory=directory)
    templates.env.globals["port"] = port
    templates.env.tests["web_url"] = is_web_url
    return templates


def build_context(settings: Settings, store: EntryStore | None = None) -> AppContext:
    templates = load_templates(settings.templates_dir, settings.port)
    addr = ipaddress.ip_address(settings.addr) if settings.addr else local_ip()
    if store is None:
        store = build_store(settings)
    return AppContext(store=store, addr=addr, templates=templates)


def create_app(settings: Settings | None = None, store: EntryStore | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cfg = settings or load_settings()
        setup_logging(cfg.log_level)
        ctx = build_context(cfg, store)
        app.state.ctx = ctx
        logger.info("serving entries, local address %s", ctx.addr)
        try:
            yield
        finally:
            # injected stores belong to the caller
            if store is None:
                ctx.store.close()

    app = FastAPI(title="toomanytabs", version=__version__, lifespan=lifespan)

    @app.exception_handler(StarletteHTTPException)
    async def plain_http_error(request: Request, exc: StarletteHTTPException):
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def plain_validation_error(request: Request, exc: RequestValidationError):
        fields = ", ".join(".".join(str(p) for p in err.get("loc", ())) for err in exc.errors())
        return PlainTextResponse(f"invalid request: {fields}", status_code=400)

    # Include routers
    from .routes import base as base_routes
    from .routes import entries as entries_routes

    app.include_router(base_routes.router)
    app.include_router(entries_routes.router)
    return app


app = create_app()
