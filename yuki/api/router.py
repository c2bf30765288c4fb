from fastapi import APIRouter

from yuki.api.v1.auth import router as auth_router
from yuki.api.v1.contacts import router as contacts_router
from yuki.api.v1.health import router as health_router
from yuki.api.v1.onramp import router as onramp_router
from yuki.api.v1.passkey import router as passkey_router
from yuki.api.v1.profile import router as profile_router
from yuki.api.v1.users import router as users_router
from yuki.api.v1.wallet import router as wallet_router

api_router = APIRouter()
api_router.include_router(health_router, prefix="/v1", tags=["health"])
api_router.include_router(auth_router, prefix="/v1", tags=["auth"])
api_router.include_router(wallet_router, prefix="/v1", tags=["wallet"])
api_router.include_router(passkey_router, prefix="/v1", tags=["passkey"])
api_router.include_router(profile_router, prefix="/v1", tags=["profile"])
api_router.include_router(contacts_router, prefix="/v1/contacts", tags=["contacts"])
api_router.include_router(users_router, prefix="/v1", tags=["users"])
api_router.include_router(onramp_router, prefix="/v1", tags=["onramp"])
