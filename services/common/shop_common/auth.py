"""
認証・認可レイヤ

Bearer トークン (Keycloak 形式の JWT) をデコードし、2 つの権限ソースを
和集合にして呼び出し元の権限セットを作る。

  - scope / scp クレーム → "SCOPE_<scope>"
  - realm_access.roles    → ロール名そのまま ("USER", "ADMIN")

呼び出し元の情報はグローバルなセキュリティコンテキストには置かず、
Principal としてハンドラに明示的に渡す。
"""

import logging
from dataclasses import dataclass, field

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .errors import AuthenticationRequired, AuthorizationDenied, ConfigurationError

logger = logging.getLogger(__name__)

USER = "USER"
ADMIN = "ADMIN"

_bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    username: str
    authorities: frozenset[str]
    token: str = field(default="", repr=False)

    def has_role(self, role: str) -> bool:
        return role in self.authorities or f"SCOPE_{role}" in self.authorities

    def has_any_role(self, *roles: str) -> bool:
        return any(self.has_role(r) for r in roles)

    @property
    def is_admin(self) -> bool:
        return self.has_role(ADMIN)


class TokenDecoder:
    def __init__(
        self,
        key: str,
        algorithms: list[str],
        audience: str | None = None,
        issuer: str | None = None,
    ) -> None:
        self.key = key
        self.algorithms = algorithms
        self.audience = audience
        self.issuer = issuer

    def decode(self, token: str) -> dict:
        """署名と有効期限を検証してクレームを返す。"""
        try:
            return jwt.decode(
                token,
                self.key,
                algorithms=self.algorithms,
                audience=self.audience,
                issuer=self.issuer,
                options={"verify_aud": self.audience is not None},
            )
        except jwt.InvalidTokenError as e:
            logger.warning("Rejected bearer token: %s", e)
            raise AuthenticationRequired("Invalid bearer token") from e
        except jwt.PyJWTError as e:
            # JWT_KEY が読めない (PEM 形式でない等) のはトークンではなく設定の問題
            logger.error("JWT verification key is unusable: %s", e)
            raise ConfigurationError("Token verification is misconfigured") from e


def _scope_authorities(claims: dict) -> set[str]:
    scopes = claims.get("scope", claims.get("scp"))
    if not scopes:
        return set()
    if isinstance(scopes, str):
        scopes = scopes.split()
    return {f"SCOPE_{s}" for s in scopes}


def _realm_roles(claims: dict) -> set[str]:
    realm_access = claims.get("realm_access")
    if realm_access is None:
        logger.warning("No realm_access claim found in JWT")
        return set()
    roles = realm_access.get("roles")
    if roles is None:
        logger.warning("No roles found in realm_access")
        return set()
    return set(roles)


def extract_authorities(claims: dict) -> frozenset[str]:
    return frozenset(_scope_authorities(claims) | _realm_roles(claims))


def principal_from_claims(claims: dict, token: str = "") -> Principal:
    username = claims.get("preferred_username") or claims.get("sub")
    if not username:
        raise AuthenticationRequired("Token carries no caller identity")
    authorities = extract_authorities(claims)
    logger.debug("Resolved %s with authorities %s", username, sorted(authorities))
    return Principal(username=username, authorities=authorities, token=token)


async def get_principal(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> Principal:
    if credentials is None:
        raise AuthenticationRequired("Missing bearer token")
    decoder: TokenDecoder = request.app.state.token_decoder
    claims = decoder.decode(credentials.credentials)
    return principal_from_claims(claims, credentials.credentials)


def require_roles(*roles: str):
    """いずれかのロールを要求する依存関数を返す（ハンドラ実行前に評価される）。"""

    async def dependency(principal: Principal = Depends(get_principal)) -> Principal:
        if not principal.has_any_role(*roles):
            raise AuthorizationDenied(
                f"Requires one of roles: {', '.join(roles)}"
            )
        return principal

    return dependency
