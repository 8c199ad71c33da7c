from typing import Any

from fastapi import APIRouter, Body, Depends, Request, Response, status

from aquora.auth.deps import get_app_settings, get_auth_service, get_current_auth
from aquora.auth.schemas import LoginRequest, RegisterRequest
from aquora.auth.security import AccessClaims
from aquora.auth.service import AuthService, ClientInfo, IssuedSession
from aquora.core.config import Settings
from aquora.core.errors import Unauthorized
from aquora.core.handlers import api_error_response

router = APIRouter()

RETURN_REFRESH_HEADER = "x-auth-return-refresh-token"


def _client_info(request: Request) -> ClientInfo:
    return ClientInfo(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


def _wants_refresh_token(request: Request) -> bool:
    value = (request.headers.get(RETURN_REFRESH_HEADER) or "").strip().lower()
    return value in ("true", "1")


def _presented_refresh_token(
    request: Request, body: Any, settings: Settings
) -> str | None:
    from_cookie = request.cookies.get(settings.AUTH_REFRESH_TOKEN_COOKIE_NAME)
    if from_cookie:
        return from_cookie
    # body is read leniently: anything but a non-empty string counts as absent
    from_body = body.get("refreshToken") if isinstance(body, dict) else None
    if isinstance(from_body, str) and from_body:
        return from_body
    return None


def _set_refresh_cookie(response: Response, value: str, settings: Settings) -> None:
    response.set_cookie(
        key=settings.AUTH_REFRESH_TOKEN_COOKIE_NAME,
        value=value,
        max_age=settings.refresh_token_ttl_seconds,
        path=settings.AUTH_REFRESH_TOKEN_COOKIE_PATH,
        domain=settings.AUTH_REFRESH_TOKEN_COOKIE_DOMAIN,
        secure=settings.AUTH_REFRESH_TOKEN_COOKIE_SECURE,
        httponly=True,
        samesite=settings.AUTH_REFRESH_TOKEN_COOKIE_SAME_SITE,
    )


def _clear_refresh_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=settings.AUTH_REFRESH_TOKEN_COOKIE_NAME,
        path=settings.AUTH_REFRESH_TOKEN_COOKIE_PATH,
        domain=settings.AUTH_REFRESH_TOKEN_COOKIE_DOMAIN,
        secure=settings.AUTH_REFRESH_TOKEN_COOKIE_SECURE,
        httponly=True,
        samesite=settings.AUTH_REFRESH_TOKEN_COOKIE_SAME_SITE,
    )


def _session_body(request: Request, issued: IssuedSession) -> dict:
    data = issued.auth.model_dump(mode="json", by_alias=True, exclude={"refresh_token"})
    if _wants_refresh_token(request):
        data["refreshToken"] = issued.refresh_token
    return {"success": True, "data": data}


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    request: Request,
    response: Response,
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
):
    issued = service.register(payload, _client_info(request))
    _set_refresh_cookie(response, issued.refresh_token, settings)
    return _session_body(request, issued)


@router.post("/login")
def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
):
    issued = service.login(payload, _client_info(request))
    _set_refresh_cookie(response, issued.refresh_token, settings)
    return _session_body(request, issued)


@router.post("/refresh")
def refresh(
    request: Request,
    response: Response,
    body: Any = Body(default=None),
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
):
    try:
        presented = _presented_refresh_token(request, body, settings)
        if not presented:
            raise Unauthorized("Missing refresh token")
        issued = service.refresh(presented, _client_info(request))
    except Unauthorized as exc:
        # a failed refresh means the client must stop presenting this token
        failed = api_error_response(exc)
        _clear_refresh_cookie(failed, settings)
        return failed

    _set_refresh_cookie(response, issued.refresh_token, settings)
    return _session_body(request, issued)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    request: Request,
    body: Any = Body(default=None),
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
):
    service.logout(_presented_refresh_token(request, body, settings))
    done = Response(status_code=status.HTTP_204_NO_CONTENT)
    _clear_refresh_cookie(done, settings)
    return done


@router.get("/me")
def me(
    auth: AccessClaims = Depends(get_current_auth),
    service: AuthService = Depends(get_auth_service),
):
    user = service.me(auth.sub)
    return {"success": True, "data": user.model_dump(mode="json", by_alias=True)}
