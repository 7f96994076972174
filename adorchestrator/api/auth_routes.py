"""AdOrchestrator — Login, Logout & Auth Callback Routes."""

import html
from typing import Optional

from fastapi import APIRouter, Form, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from adorchestrator.config import settings
from adorchestrator.core.auth import (
    AuthProviderError,
    clear_session_cookies,
    get_access_token,
    get_auth_client,
    safe_redirect_path,
    set_session_cookies,
)
from adorchestrator.core.logging import get_logger

logger = get_logger("api.auth")

router = APIRouter(tags=["Auth"])

LOGIN_PAGE = """<!doctype html>
<html>
<head><title>Sign in</title></head>
<body>
  <h1>Sign in</h1>
  {error}
  <form method="post" action="/login">
    <input type="hidden" name="next" value="{next}">
    <label>Email <input type="email" name="email" required></label>
    <label>Password <input type="password" name="password" required></label>
    <button type="submit">Sign in</button>
  </form>
</body>
</html>"""


@router.get("/login", response_class=HTMLResponse)
async def login_page(error: Optional[str] = None, next: Optional[str] = None):
    error_html = f'<p class="error">{html.escape(error)}</p>' if error else ""
    return LOGIN_PAGE.format(error=error_html, next=html.escape(safe_redirect_path(next)))


@router.post("/login")
async def login(
    request: Request,
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    next: Optional[str] = Form(None),
):
    """Password sign-in. Sets the session cookies and redirects."""
    if not email or not password:
        raise HTTPException(status_code=400, detail="Email and password are required")

    try:
        session = await get_auth_client(request).sign_in_with_password(email, password)
    except AuthProviderError as e:
        logger.info(f"Sign-in rejected: {e}", extra={"status_code": e.status_code})
        raise HTTPException(status_code=401, detail="Invalid email or password")

    response = RedirectResponse(url=safe_redirect_path(next), status_code=303)
    set_session_cookies(response, session)
    return response


@router.post("/logout")
async def logout(request: Request):
    token = get_access_token(request)
    if token:
        await get_auth_client(request).sign_out(token)

    response = RedirectResponse(url="/login", status_code=303)
    clear_session_cookies(response)
    return response


@router.get("/auth/callback")
async def auth_callback(
    request: Request,
    code: Optional[str] = Query(None),
    next: Optional[str] = Query(None),
):
    """Exchange a one-time auth code for a session, then redirect.

    Only allow-listed paths are honoured as ``next``; anything else lands
    on ``/``.
    """
    origin = str(request.base_url).rstrip("/")

    if code:
        verifier = request.cookies.get(settings.code_verifier_cookie_name)
        try:
            session = await get_auth_client(request).exchange_code_for_session(code, verifier)
        except AuthProviderError as e:
            logger.warning(f"Auth code exchange failed: {e}")
        else:
            response = RedirectResponse(
                url=f"{origin}{safe_redirect_path(next)}", status_code=307
            )
            set_session_cookies(response, session)
            response.delete_cookie(settings.code_verifier_cookie_name)
            return response

    return RedirectResponse(url=f"{origin}/login?error=auth_callback_failed", status_code=307)
