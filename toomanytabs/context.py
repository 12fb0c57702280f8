from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request
from fastapi.templating import Jinja2Templates

from .models import IpAddr
from .storage import EntryStore


@dataclass(frozen=True)
class AppContext:
    """Process-wide state, built once at startup and shared read-only by handlers."""

    store: EntryStore
    addr: IpAddr
    templates: Jinja2Templates


def get_ctx(request: Request) -> AppContext:
    return request.app.state.ctx
