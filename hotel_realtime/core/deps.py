from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from hotel_realtime.core.security import decode_token
from hotel_realtime.services.backend_api import BackendClient, DashboardFeed
from hotel_realtime.services.realtime import RealTimeSession

security_scheme = HTTPBearer()


async def get_current_claims(
    credentials: HTTPAuthorizationCredentials = Depends(security_scheme),
) -> dict:
    payload = decode_token(credentials.credentials)
    if payload is None or payload.get("type") != "access":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return payload


def get_bearer_token(credentials: HTTPAuthorizationCredentials = Depends(security_scheme)) -> str:
    return credentials.credentials


def get_realtime(request: Request) -> RealTimeSession:
    return request.app.state.realtime


def get_backend(request: Request) -> BackendClient:
    return request.app.state.backend


def get_feeds(request: Request) -> dict[str, DashboardFeed]:
    return request.app.state.feeds
