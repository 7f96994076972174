"""AdOrchestrator — Session Authentication.

Sessions live with the hosted auth provider (Supabase Auth REST API);
this module only carries the access token in a cookie and asks the
provider who it belongs to.
"""

from typing import Any, Dict, Optional

import httpx
from fastapi import HTTPException, Request
from fastapi.responses import RedirectResponse, Response
from pydantic import BaseModel

from adorchestrator.config import settings
from adorchestrator.core.logging import get_logger

logger = get_logger("auth")

# Post-login destinations. Anything else (absolute URLs, //host, unknown
# paths) falls back to "/".
ALLOWED_REDIRECT_PATHS = (
    "/",
    "/brands",
    "/products",
    "/campaigns",
    "/assets",
    "/conversions",
    "/settings",
)

PUBLIC_PATHS = ("/login", "/auth/callback", "/health")
STATIC_PREFIXES = ("/static/", "/_next/static/", "/_next/image")
STATIC_SUFFIXES = (".svg", ".png", ".jpg", ".jpeg", ".gif", ".webp", "favicon.ico")


class AuthProviderError(Exception):
    """Raised when the auth provider rejects a request or is unreachable."""

    def __init__(self, message: str, status_code: int = 0):
        self.status_code = status_code
        super().__init__(message)


class SessionUser(BaseModel):
    id: str
    email: Optional[str] = None


class SupabaseAuthClient:
    """Async HTTP client for the Supabase Auth (GoTrue) REST API."""

    def __init__(
        self,
        base_url: str | None = None,
        anon_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.supabase_url).rstrip("/")
        self.anon_key = anon_key or settings.supabase_anon_key
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=f"{self.base_url}/auth/v1",
            headers={"apikey": self.anon_key},
            timeout=10.0,
            transport=self._transport,
        )

    @staticmethod
    def _error_message(resp: httpx.Response) -> str:
        try:
            body = resp.json()
        except ValueError:
            return resp.text or f"status {resp.status_code}"
        return (
            body.get("error_description")
            or body.get("msg")
            or body.get("message")
            or body.get("error")
            or f"status {resp.status_code}"
        )

    @staticmethod
    def _json(resp: httpx.Response) -> Dict[str, Any]:
        try:
            return resp.json()
        except ValueError as e:
            raise AuthProviderError(
                f"Auth provider returned a non-JSON body (status {resp.status_code})",
                resp.status_code,
            ) from e

    async def get_user(self, access_token: str) -> Optional[SessionUser]:
        """Resolve an access token to its user; None when the token is not valid."""
        async with self._client() as client:
            try:
                resp = await client.get(
                    "/user", headers={"Authorization": f"Bearer {access_token}"}
                )
            except httpx.RequestError as e:
                raise AuthProviderError(f"Auth provider unreachable: {e}") from e
        if resp.status_code in (401, 403):
            return None
        if resp.status_code >= 400:
            raise AuthProviderError(self._error_message(resp), resp.status_code)
        data = self._json(resp)
        return SessionUser(id=str(data.get("id", "")), email=data.get("email"))

    async def _token(self, grant_type: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        async with self._client() as client:
            try:
                resp = await client.post(
                    "/token", params={"grant_type": grant_type}, json=payload
                )
            except httpx.RequestError as e:
                raise AuthProviderError(f"Auth provider unreachable: {e}") from e
        if resp.status_code >= 400:
            raise AuthProviderError(self._error_message(resp), resp.status_code)
        return self._json(resp)

    async def sign_in_with_password(self, email: str, password: str) -> Dict[str, Any]:
        return await self._token("password", {"email": email, "password": password})

    async def exchange_code_for_session(
        self, code: str, code_verifier: str | None = None
    ) -> Dict[str, Any]:
        return await self._token(
            "pkce", {"auth_code": code, "code_verifier": code_verifier or ""}
        )

    async def sign_out(self, access_token: str) -> None:
        async with self._client() as client:
            try:
                await client.post(
                    "/logout", headers={"Authorization": f"Bearer {access_token}"}
                )
            except httpx.RequestError as e:
                logger.warning(f"Sign-out request failed: {e}")


# ── Request helpers ──


def get_auth_client(request: Request) -> SupabaseAuthClient:
    return request.app.state.auth_client


def get_access_token(request: Request) -> Optional[str]:
    """Session cookie first, then an ``Authorization: Bearer`` header."""
    token = request.cookies.get(settings.session_cookie_name)
    if token:
        return token
    header = request.headers.get("authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return None


async def resolve_session_user(request: Request) -> Optional[SessionUser]:
    token = get_access_token(request)
    if not token:
        return None
    try:
        return await get_auth_client(request).get_user(token)
    except AuthProviderError as e:
        logger.warning(f"Session lookup failed: {e}", extra={"endpoint": request.url.path})
        return None


async def require_user(request: Request) -> SessionUser:
    """Dependency — the signed-in user, or 401 before any handler logic runs."""
    user = await resolve_session_user(request)
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    request.state.user = user
    return user


def safe_redirect_path(next_path: Optional[str]) -> str:
    """Only exact allow-listed paths survive; everything else becomes '/'."""
    if next_path in ALLOWED_REDIRECT_PATHS:
        return next_path
    return "/"


def set_session_cookies(response: Response, session: Dict[str, Any]) -> None:
    max_age = int(session.get("expires_in") or 3600)
    response.set_cookie(
        settings.session_cookie_name,
        session["access_token"],
        max_age=max_age,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    if session.get("refresh_token"):
        response.set_cookie(
            settings.refresh_cookie_name,
            session["refresh_token"],
            httponly=True,
            secure=settings.session_cookie_secure,
            samesite="lax",
        )


def clear_session_cookies(response: Response) -> None:
    for name in (
        settings.session_cookie_name,
        settings.refresh_cookie_name,
        settings.code_verifier_cookie_name,
    ):
        response.delete_cookie(name)


# ── Session gate ──


def _is_gated(path: str) -> bool:
    if path.startswith("/api/"):
        return False  # API routes answer 401 themselves
    if any(path == p or path.startswith(f"{p}/") for p in PUBLIC_PATHS):
        return False
    if path.startswith(STATIC_PREFIXES) or path.lower().endswith(STATIC_SUFFIXES):
        return False
    return True


async def session_gate(request: Request, call_next):
    """Redirect anonymous page requests to /login and signed-in /login to /."""
    path = request.url.path

    if path == "/login":
        if await resolve_session_user(request) is not None:
            return RedirectResponse(url="/", status_code=307)
        return await call_next(request)

    if _is_gated(path) and await resolve_session_user(request) is None:
        return RedirectResponse(url="/login", status_code=307)

    return await call_next(request)
