from fastapi import APIRouter, Depends, status

from hotel_realtime.core.deps import get_backend, get_bearer_token, get_current_claims, get_realtime
from hotel_realtime.schemas.realtime import SessionResponse
from hotel_realtime.services.backend_api import BackendClient
from hotel_realtime.services.realtime import RealTimeSession

router = APIRouter(prefix="/session", tags=["Session"])


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED, summary="Start the real-time session", description="Subscribes the channels of the token's role and opens the push connection. A running session is replaced.")
async def start_session(
    claims: dict = Depends(get_current_claims),
    token: str = Depends(get_bearer_token),
    realtime: RealTimeSession = Depends(get_realtime),
    backend: BackendClient = Depends(get_backend),
):
    await realtime.stop()

    backend.set_token(token)
    await realtime.start(token, role=claims.get("role"), user_id=claims.get("sub"))

    return SessionResponse(
        user_id=realtime.user_id,
        role=realtime.role,
        channels=list(realtime.registry),
        state=realtime.connection.state.value,
    )


@router.delete("", status_code=status.HTTP_204_NO_CONTENT, summary="End the real-time session", description="Logout: closes the push connection and forgets all notifications.")
async def end_session(
    claims: dict = Depends(get_current_claims),
    realtime: RealTimeSession = Depends(get_realtime),
    backend: BackendClient = Depends(get_backend),
):
    await realtime.stop()
    backend.set_token(None)
