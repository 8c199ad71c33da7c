from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from aquora.auth.roles import UserRole
from aquora.auth.security import AccessClaims, InvalidToken, TokenCodec
from aquora.auth.service import AuthService
from aquora.core.config import Settings
from aquora.core.errors import Forbidden, Unauthorized
from aquora.db.session import get_db

bearer = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_codec(request: Request) -> TokenCodec:
    return request.app.state.token_codec


def get_auth_service(request: Request, db: Session = Depends(get_db)) -> AuthService:
    state = request.app.state
    return AuthService(db, state.settings, state.password_hasher, state.token_codec)


def get_current_auth(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    codec: TokenCodec = Depends(get_token_codec),
) -> AccessClaims:
    if not creds:
        raise Unauthorized("Missing access token")

    try:
        return codec.verify(creds.credentials)
    except InvalidToken:
        raise Unauthorized("Invalid or expired access token")


def require_super_admin(auth: AccessClaims = Depends(get_current_auth)) -> AccessClaims:
    if auth.effective_role != UserRole.SUPER_ADMIN:
        raise Forbidden("Forbidden")
    return auth
