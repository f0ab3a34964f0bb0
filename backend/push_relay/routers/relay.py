"""Registration and dispatch API endpoints."""
import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas import DispatchRequest, DispatchResponse, RegisterRequest, RegisterResponse
from ..services.dispatcher import DispatchService
from ..services.registration import RegistrationService
from ..services.store import RelayStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["relay"])


async def get_store(db: AsyncSession = Depends(get_db)) -> RelayStore:
    """Dependency to get a store bound to the request's session."""
    return RelayStore(db)


def get_registration_service(request: Request) -> RegistrationService:
    return request.app.state.registration_service


def get_dispatch_service(request: Request) -> DispatchService:
    return request.app.state.dispatch_service


@router.post("/register", response_model=RegisterResponse)
async def register_device(
    data: RegisterRequest,
    store: RelayStore = Depends(get_store),
    service: RegistrationService = Depends(get_registration_service),
):
    """Register a device's push-network token and issue a new dispatch token.

    Devices should call this whenever they start listening for an address;
    every call rotates the token previously handed out.
    """
    row = await service.register(
        store,
        network=data.network,
        registration_id=data.registration_id,
        details=data.details,
        address=data.address,
    )
    return RegisterResponse(
        token=row.current_token,
        ctime=row.ctime,
        atime=row.atime,
        message_count=row.message_count,
    )


@router.post("/dispatch", response_model=DispatchResponse, response_model_exclude_none=True)
async def dispatch_messages(
    data: DispatchRequest,
    store: RelayStore = Depends(get_store),
    service: DispatchService = Depends(get_dispatch_service),
):
    """Send messages to the devices listening on the origin's address.

    An empty response body means every token was valid and every delivery
    was accepted by the broker.
    """
    result = await service.dispatch(
        store,
        address=data.address,
        signature=data.signature,
        messages=data.messages,
    )
    return DispatchResponse(
        invalid_tokens=result.invalid_tokens or None,
        errors=result.errors or None,
    )
