"""
Key API Routes

Key pair provisioning and public key lookup. Private keys are never
returned by any route.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Path, status

from api.dependencies import ServiceDep, UserDep
from api.schemas import PublicKeyResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post(
    "/generate",
    response_model=PublicKeyResponse,
    status_code=status.HTTP_201_CREATED,
)
async def generate_keys(user_id: UserDep, service: ServiceDep):
    """
    Generate (or regenerate) the caller's RSA key pair.

    Any previous pair is replaced; messages sealed for the old key can no
    longer be opened.
    """
    public_key = await service.generate_keys(user_id)
    return PublicKeyResponse(user_id=user_id, public_key=public_key)


@router.get("/{user_id}/public", response_model=PublicKeyResponse)
async def get_public_key(
    user_id: Annotated[int, Path(gt=0)],
    caller: UserDep,
    service: ServiceDep,
):
    public_key = await service.get_public_key(user_id)
    return PublicKeyResponse(user_id=user_id, public_key=public_key)
