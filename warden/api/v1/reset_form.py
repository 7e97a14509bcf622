"""Browser-facing password reset: the emailed link opens a form that posts back here."""

from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Depends, Form, HTTPException, Query, Request, status
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError

from warden.api.v1.auth import get_account_service
from warden.api.v1.errors import to_http_exception
from warden.core.errors import TokenError, WardenError
from warden.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN
from warden.schemas.auth import ResetPasswordForm
from warden.schemas.user import MessageResponse
from warden.services.accounts import AccountService

router = APIRouter()

TEMPLATES_DIR = Path(__file__).resolve().parents[2] / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

INVALID_LINK = "Reset link is invalid or has expired"


def _invalid_link() -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_LINK)


@router.get("/reset-password", response_class=HTMLResponse)
def reset_password_form(
    request: Request,
    service: Annotated[AccountService, Depends(get_account_service)],
    token: Annotated[str, Query()] = "",
) -> HTMLResponse:
    """Serve the reset form with the token embedded. Dead or forged links are refused up front."""
    if not token:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Token is required")
    try:
        service.verify_reset_token(token)
    except TokenError as e:
        raise _invalid_link() from e
    return templates.TemplateResponse(
        request,
        "reset_password.html",
        {"token": token, "min_len": PASSWORD_MIN_LEN, "max_len": PASSWORD_MAX_LEN},
    )


@router.post("/reset-password", response_model=MessageResponse)
def reset_password_submit(
    service: Annotated[AccountService, Depends(get_account_service)],
    token: Annotated[str, Form()] = "",
    password: Annotated[str, Form()] = "",
    confirm_password: Annotated[str, Form()] = "",
) -> MessageResponse:
    try:
        form = ResetPasswordForm(
            token=token, password=password, confirm_password=confirm_password
        )
    except ValidationError as e:
        # Messages only; the submitted values are never echoed back.
        detail = "; ".join(err["msg"].removeprefix("Value error, ") for err in e.errors())
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail) from e
    try:
        service.perform_password_reset(form.token, form.password)
    except TokenError as e:
        raise _invalid_link() from e
    except WardenError as e:
        raise to_http_exception(e) from e
    return MessageResponse(message="Password reset successfully")
