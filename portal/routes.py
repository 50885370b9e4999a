"""
HTTP routes for the account portal.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Type, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import FileResponse, JSONResponse
from pydantic import BaseModel, ValidationError
from starlette.concurrency import run_in_threadpool

from portal.config import Settings, get_settings
from portal.dependencies import get_account_service, get_cookie_signer
from portal.errors import HTTP_STATUS
from portal.schemas import (
    ContactRequest,
    CredentialsRequest,
    ErrorResponse,
    FirebaseInfo,
    HealthResponse,
    ProbeErrorResponse,
    ProbeResponse,
    SuccessResponse,
    UserInfo,
    UserStatusResponse,
)
from portal.service import AccountService, OperationResult
from portal.sessions import SessionCookieSigner

logger = logging.getLogger(__name__)

router = APIRouter()

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

M = TypeVar("M", bound=BaseModel)


async def _read_payload(request: Request) -> dict:
    """Accept both JSON and form-encoded bodies."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        return dict(form)
    try:
        payload = await request.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


def _parse(model: Type[M], payload: dict) -> M:
    # Malformed fields are treated as missing; the service reports them.
    try:
        return model.model_validate(payload)
    except ValidationError:
        return model()


def _error_response(result: OperationResult) -> JSONResponse:
    return JSONResponse(
        status_code=HTTP_STATUS[result.error],
        content=ErrorResponse(error=result.message or "").model_dump(),
    )


def _session_token(
    request: Request, settings: Settings, signer: SessionCookieSigner
) -> Optional[str]:
    return signer.unsign(request.cookies.get(settings.session_cookie_name))


@router.get("/health", response_model=HealthResponse)
def health(settings: Settings = Depends(get_settings)):
    return HealthResponse(
        firebase=FirebaseInfo(
            projectId=settings.firebase_project_id,
            database=settings.database_url,
            serviceAccount=settings.firebase_client_email,
        ),
        session=settings.session_secret_configured,
    )


@router.post("/register", response_model=SuccessResponse)
async def register(
    request: Request, service: AccountService = Depends(get_account_service)
):
    body = _parse(CredentialsRequest, await _read_payload(request))
    result = await run_in_threadpool(service.register, body.username, body.password)
    if not result.ok:
        return _error_response(result)
    return SuccessResponse()


@router.post("/login", response_model=SuccessResponse)
async def login(
    request: Request,
    response: Response,
    service: AccountService = Depends(get_account_service),
    signer: SessionCookieSigner = Depends(get_cookie_signer),
    settings: Settings = Depends(get_settings),
):
    body = _parse(CredentialsRequest, await _read_payload(request))
    current_token = _session_token(request, settings, signer)
    result = await run_in_threadpool(
        service.login, body.username, body.password, current_token
    )
    if not result.ok:
        return _error_response(result)

    response.set_cookie(
        key=settings.session_cookie_name,
        value=signer.sign(result.token),
        max_age=settings.session_ttl_seconds,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
        path="/",
    )
    return SuccessResponse()


@router.get(
    "/api/user", response_model=UserStatusResponse, response_model_exclude_none=True
)
def current_user(
    request: Request,
    response: Response,
    service: AccountService = Depends(get_account_service),
    signer: SessionCookieSigner = Depends(get_cookie_signer),
    settings: Settings = Depends(get_settings),
):
    result = service.whoami(_session_token(request, settings, signer))
    if not result.ok:
        return JSONResponse(
            status_code=HTTP_STATUS[result.error], content={"loggedIn": False}
        )
    if result.session_cleared:
        response.delete_cookie(settings.session_cookie_name, path="/")
    if not result.logged_in:
        return UserStatusResponse(loggedIn=False)
    return UserStatusResponse(
        loggedIn=True,
        user=UserInfo(username=result.username, isAdmin=result.is_admin),
    )


@router.post("/logout", response_model=SuccessResponse)
def logout(
    request: Request,
    response: Response,
    service: AccountService = Depends(get_account_service),
    signer: SessionCookieSigner = Depends(get_cookie_signer),
    settings: Settings = Depends(get_settings),
):
    result = service.logout(_session_token(request, settings, signer))
    if not result.ok:
        return _error_response(result)
    response.delete_cookie(settings.session_cookie_name, path="/")
    return SuccessResponse()


@router.post("/contact", response_model=SuccessResponse)
async def contact(
    request: Request, service: AccountService = Depends(get_account_service)
):
    body = _parse(ContactRequest, await _read_payload(request))
    result = await run_in_threadpool(
        service.submit_contact, body.name, body.email, body.message
    )
    if not result.ok:
        return _error_response(result)
    return SuccessResponse()


@router.get("/test-firestore", response_model=ProbeResponse)
def test_firestore(service: AccountService = Depends(get_account_service)):
    result = service.probe_document_store()
    if not result.ok:
        return JSONResponse(
            status_code=HTTP_STATUS[result.error],
            content=ProbeErrorResponse(
                error=result.message or "", details=result.detail
            ).model_dump(),
        )
    return ProbeResponse(document=result.document)


@router.get("/{full_path:path}", include_in_schema=False)
def static_fallback(full_path: str, settings: Settings = Depends(get_settings)):
    """
    Serve files from the static directory, falling back to index.html so the
    frontend can handle client-side routes.
    """
    static_root = Path(settings.static_dir).resolve()
    candidate = (static_root / full_path).resolve()
    if full_path and candidate.is_relative_to(static_root) and candidate.is_file():
        return FileResponse(candidate)

    index = static_root / "index.html"
    if not index.is_file():
        raise HTTPException(status_code=404, detail="Not found")
    return FileResponse(index)
