import enum
from dataclasses import dataclass

from jose import JWTError, ExpiredSignatureError, jwt

from fleetlink.config import settings
from fleetlink.utils.exceptions import TokenExpiredException, UnauthorizedException


class RoleName(str, enum.Enum):
    ADMIN    = "ADMIN"
    MANAGER  = "MANAGER"
    OPERATOR = "OPERATOR"


@dataclass
class Principal:
    """Caller identity carried by a verified access token."""
    userId: str
    accountId: str
    role: RoleName


# ─── JWT ──────────────────────────────────────────────────────────────────────
# Tokens are issued by the identity service; this service only verifies them.
def verify_access_token(token: str) -> dict:
    """
    Decode and validate a JWT access token.
    Raises 401 if invalid, 401 (TOKEN_EXPIRED) if expired.
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        if payload.get("type") != "access":
            raise UnauthorizedException("Invalid token type")
        return payload
    except ExpiredSignatureError:
        raise TokenExpiredException()
    except JWTError:
        raise UnauthorizedException("Invalid or malformed token")


def principal_from_token(token: str) -> Principal:
    payload = verify_access_token(token)
    user_id = payload.get("sub")
    account_id = payload.get("accountId")
    if not user_id or not account_id:
        raise UnauthorizedException("Invalid token payload")
    try:
        role = RoleName(payload.get("role"))
    except ValueError:
        raise UnauthorizedException("Invalid role in token")
    return Principal(userId=str(user_id), accountId=str(account_id), role=role)
