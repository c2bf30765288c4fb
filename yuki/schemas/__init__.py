from .base import CamelModel
from .wallet import EncryptedWalletIn, EncryptedWalletOut, WalletUpgradeData, PasskeyCredentialIn
from .profile import PublicProfile, FullProfile, ProfileUpdate
from .contact import ContactCreate, ContactOut
from .onramp import OnrampQuote, OnrampQuoteRequest, OnrampQuoteResponse

__all__ = [
    "CamelModel",
    "EncryptedWalletIn",
    "EncryptedWalletOut",
    "WalletUpgradeData",
    "PasskeyCredentialIn",
    "PublicProfile",
    "FullProfile",
    "ProfileUpdate",
    "ContactCreate",
    "ContactOut",
    "OnrampQuote",
    "OnrampQuoteRequest",
    "OnrampQuoteResponse",
]
