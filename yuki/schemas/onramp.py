from typing import Literal, Optional

from pydantic import Field

from yuki.schemas.base import CamelModel

PaymentMethod = Literal["card", "bank", "apple_pay"]


class FeeItem(CamelModel):
    name: str
    amount: float


class OnrampQuoteRequest(CamelModel):
    fiat_amount: float = Field(..., gt=0)
    fiat_currency: str = Field("USD", min_length=3, max_length=3)
    crypto_currency: str = Field("USDC", min_length=1, max_length=16)
    payment_method: PaymentMethod = "card"
    country: str = Field("US", min_length=2, max_length=2)


class OnrampQuote(CamelModel):
    provider: str
    provider_name: str
    fiat_amount: float
    fiat_currency: str
    crypto_amount: float = 0
    crypto_currency: str
    total_fees: float = 0
    fee_percentage: float = 0
    fee_breakdown: list[FeeItem] = []
    expires_at: Optional[str] = None
    success: bool
    error: Optional[str] = None
    timestamp: int


class OnrampQuoteResponse(CamelModel):
    quotes: list[OnrampQuote]
    best_quote: Optional[OnrampQuote] = None
    timestamp: int


class CoinbaseOnrampRequest(CamelModel):
    wallet_address: str
    amount: Optional[float] = Field(None, gt=0)
    asset: str = "USDC"
    network: str = "base"


class CoinbaseOnrampResponse(CamelModel):
    success: bool = True
    onramp_url: str
    wallet_address: str


class CoinbaseOnrampStatus(CamelModel):
    available: bool
    supported_assets: list[str]
    supported_networks: list[str]
