"""Kompo routes: display a komposer, dispatch an action."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from kompo.core.request import KompoRequest
from kompo.exceptions import KompoException
from kompo.komposers.registry import resolve
from kompo.routing.dispatcher import Dispatcher
from kompo.server.db import get_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/_kompo", tags=["kompo"])


@router.get("/display/{kompo_class}", status_code=200)
def display(kompo_class: str, request: Request, session: Session = Depends(get_session)) -> dict[str, Any]:
    """Display-boot a registered komposer. Query parameters are its request fields."""
    kompo_request = KompoRequest(
        data=dict(request.query_params),
        headers=dict(request.headers),
        session=session,
    )
    try:
        return Dispatcher.boot_for_display(kompo_request, resolve(kompo_class)).to_payload()
    except KompoException as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail()) from e


@router.post("", status_code=200)
def dispatch(
    request: Request,
    payload: Any = Body(default=None),
    session: Session = Depends(get_session),
) -> Any:
    """Kompo action entry point. The X-Kompo-* headers select what runs."""
    kompo_request = KompoRequest(
        data=payload if payload is not None else {},
        headers=dict(request.headers),
        session=session,
    )
    try:
        return Dispatcher.dispatch_connection(kompo_request)
    except KompoException as e:
        logger.info("routes: %s answered %s: %s", kompo_request.action, e.status_code, e.message)
        raise HTTPException(status_code=e.status_code, detail=e.detail()) from e
