"""FastAPI dependency: get_current_user_id.

Usage in any protected router:
    from src.mp_gateway.auth.dependencies import get_current_user_id

    @router.get("/protected")
    async def protected(user_id: Annotated[str, Depends(get_current_user_id)]):
        ...

The marketplace has no user table of its own: the token's ``sub`` claim is the
trusted user id.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.mp_common.errors import InvalidCredentialsError
from src.mp_gateway.auth.jwt_handler import user_id_from_token

# Tokens come from the external identity service; tokenUrl only feeds Swagger UI
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_user_id(token: str = Depends(oauth2_scheme)) -> str:
    """Raises HTTP 401 if the token is missing, invalid, or expired."""
    try:
        return user_id_from_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None
