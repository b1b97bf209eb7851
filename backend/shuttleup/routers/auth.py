import os
from typing import Any

import jwt
from fastapi import Depends, Header, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..domain import Authorization, UserRole
from ..exceptions import http_problem
from ..models import User


def get_jwt_secret() -> str:
  secret = os.getenv("JWT_SECRET")
  if not secret:
    raise RuntimeError("JWT_SECRET environment variable is required")
  if len(secret) < 32 or secret.lower() in {"secret", "changeme", "default"}:
    raise RuntimeError(
        "JWT_SECRET must be at least 32 characters and not a common default"
    )
  return secret


JWT_ALG = "HS256"
SCORER_PIN_HEADER = "X-Scorer-Pin"


def _rate_limits_disabled() -> bool:
  return (os.getenv("DISABLE_RATE_LIMITS") or "").lower() == "true"


def _get_client_ip(request: Request) -> str:
  forwarded = request.headers.get("X-Forwarded-For")
  if forwarded:
    parts = [ip.strip() for ip in forwarded.split(",") if ip.strip()]
    if parts:
      return parts[-1]
  real_ip = request.headers.get("X-Real-IP")
  if real_ip:
    return real_ip
  return request.client.host if request.client else ""


limiter = Limiter(key_func=_get_client_ip)


def scoring_rate_limit() -> str:
  if _rate_limits_disabled():
    return "1000/second"
  return "120/minute"


def finalize_rate_limit() -> str:
  if _rate_limits_disabled():
    return "1000/second"
  return "10/minute"


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
  detail = exc.detail if isinstance(exc.detail, str) else ""
  if detail:
    message = f"rate limit exceeded: {detail}"
  else:
    message = "rate limit exceeded: please wait before submitting another request."
  return JSONResponse(
      status_code=429,
      content={
          "detail": message,
          "code": "rate_limit_exceeded",
      },
  )


def _decode_token(token: str) -> dict[str, Any]:
  try:
    return jwt.decode(token, get_jwt_secret(), algorithms=[JWT_ALG])
  except jwt.ExpiredSignatureError:
    raise http_problem(
        status_code=401,
        detail="token expired",
        code="auth_token_expired",
    )
  except jwt.PyJWTError:
    raise http_problem(
        status_code=401,
        detail="invalid token",
        code="auth_invalid_token",
    )


async def get_optional_user(
    authorization: str | None = Header(None),
    session: AsyncSession = Depends(get_session),
) -> User | None:
  """Resolve the bearer token, if any. Anonymous scorers rely on the PIN."""

  if not authorization:
    return None
  if not authorization.lower().startswith("bearer "):
    raise http_problem(
        status_code=401,
        detail="unsupported authorization scheme",
        code="auth_invalid_scheme",
    )

  payload = _decode_token(authorization.split(" ", 1)[1])
  user = await session.get(User, payload.get("sub"))
  if not user:
    raise http_problem(
        status_code=401,
        detail="user not found",
        code="auth_user_not_found",
    )
  return user


async def get_authorization(
    user: User | None = Depends(get_optional_user),
    scorer_pin: str | None = Header(None, alias=SCORER_PIN_HEADER),
) -> Authorization:
  if user is None:
    return Authorization(scorer_pin=scorer_pin)
  return Authorization(
      user_id=user.id,
      role=UserRole(user.role),
      scorer_pin=scorer_pin,
  )
