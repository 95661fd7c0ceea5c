"""
Crypto API Routes

Stateless seal/open using stored keys. Nothing is written to the ledger.
"""

from fastapi import APIRouter

from api.dependencies import ServiceDep, UserDep
from api.schemas import DecryptRequest, DecryptResponse, EncryptRequest, EncryptResponse

router = APIRouter()


@router.post("/encrypt", response_model=EncryptResponse)
async def encrypt_message(request: EncryptRequest, user_id: UserDep, service: ServiceDep):
    """Encrypt a message for receiver_id with their public key."""
    ciphertext = await service.encrypt_for(request.receiver_id, request.message)
    return EncryptResponse(encrypted_message=ciphertext)


@router.post("/decrypt", response_model=DecryptResponse)
async def decrypt_message(request: DecryptRequest, user_id: UserDep, service: ServiceDep):
    """Decrypt a message addressed to the caller with the caller's own key."""
    plaintext = await service.decrypt_own(user_id, request.encrypted_message)
    return DecryptResponse(decrypted_message=plaintext)
