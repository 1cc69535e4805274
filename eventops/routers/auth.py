# eventops/routers/auth.py
import logging

from fastapi import APIRouter, Request, Form, HTTPException
from fastapi.responses import RedirectResponse

from eventops.schemas import LoginIn
from eventops.security import (
    ROLE_ADMIN,
    ROLE_GUEST,
    auth_status,
    check_admin_password,
    get_role,
    login_as,
    logout,
)
from eventops.templating import templates

router = APIRouter(tags=["Auth"])
log = logging.getLogger("eventops.auth")


# ================== JSON API ==================

@router.post("/auth/login")
def api_login(payload: LoginIn, request: Request):
    if not check_admin_password(payload.password):
        log.info("Rejected admin login attempt")
        raise HTTPException(status_code=401, detail="Invalid password")
    login_as(request, ROLE_ADMIN)
    return auth_status(request)


@router.post("/auth/guest")
def api_guest(request: Request):
    login_as(request, ROLE_GUEST)
    return auth_status(request)


@router.post("/auth/logout")
def api_logout(request: Request):
    logout(request)
    return auth_status(request)


@router.get("/auth/status")
def api_status(request: Request):
    return auth_status(request)


# ================== LOGIN PAGE ==================

@router.get("/", name="login_ui", include_in_schema=False)
def login_ui(request: Request):
    # Already inside -> straight to the task list
    if get_role(request):
        return RedirectResponse(url="/ui/tasks", status_code=303)

    return templates.TemplateResponse(request, "login.html", {"error": None})


@router.post("/ui/login", include_in_schema=False)
def login_submit(request: Request, password: str = Form("")):
    if not check_admin_password(password):
        return templates.TemplateResponse(
            request,
            "login.html",
            {"error": "Invalid password"},
            status_code=400,
        )

    login_as(request, ROLE_ADMIN)
    return RedirectResponse(url="/ui/tasks", status_code=303)


@router.post("/ui/guest", include_in_schema=False)
def guest_submit(request: Request):
    login_as(request, ROLE_GUEST)
    return RedirectResponse(url="/ui/tasks", status_code=303)


@router.get("/logout", name="logout", include_in_schema=False)
def logout_ui(request: Request):
    logout(request)
    return RedirectResponse(url="/", status_code=303)
