from .user import User
from .handle_redirect import HandleRedirect
from .wallet import WalletEnvelope
from .contact import Contact

__all__ = ["User", "HandleRedirect", "WalletEnvelope", "Contact"]
