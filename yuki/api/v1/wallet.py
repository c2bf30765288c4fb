"""
Wallet envelope endpoints. Bodies carry ciphertext only.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from yuki.core.deps import get_db, get_current_user
from yuki.models.user import User
from yuki.schemas.wallet import (
    CreateWalletRequest,
    CreateWalletResponse,
    EncryptedWalletOut,
    WalletResponse,
    WalletSummary,
)
from yuki.services.wallet_store import WalletEnvelopeStore

router = APIRouter()


@router.get("/wallet", response_model=WalletResponse)
def get_wallet(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    wallet = WalletEnvelopeStore(db).get(current_user.id)
    return WalletResponse(wallet=EncryptedWalletOut.model_validate(wallet))


@router.post("/wallet", response_model=CreateWalletResponse, status_code=status.HTTP_201_CREATED)
def create_wallet(
    payload: CreateWalletRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    wallet = WalletEnvelopeStore(db).create(current_user.id, payload.encrypted_wallet)
    return CreateWalletResponse(wallet=WalletSummary.model_validate(wallet))
