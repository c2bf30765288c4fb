"""
Onramp Service
Fiat-to-crypto quote comparison across providers and Coinbase Onramp links.
"""
import asyncio
import json
import logging
import time
from typing import Any, Optional, Protocol, Sequence
from urllib.parse import urlencode

import httpx
import redis

from yuki.core.addresses import is_valid_address
from yuki.core.config import settings
from yuki.core.errors import InvalidAddress, NotConfigured
from yuki.core.redis_client import r
from yuki.schemas.onramp import FeeItem, OnrampQuote, OnrampQuoteRequest, OnrampQuoteResponse

logger = logging.getLogger(__name__)

COINBASE_ONRAMP_URL = "https://pay.coinbase.com/buy/select-asset"
COINBASE_SUPPORTED_ASSETS = ["USDC", "ETH"]
COINBASE_SUPPORTED_NETWORKS = ["base", "ethereum"]


def now_ms() -> int:
    return int(time.time() * 1000)


class QuoteProvider(Protocol):
    name: str

    def is_configured(self) -> bool:
        ...

    async def quote(self, client: httpx.AsyncClient, request: OnrampQuoteRequest) -> OnrampQuote:
        ...


class HttpQuoteProvider:
    """
    Base for providers reached over HTTP. ``quote`` never raises: any failure,
    including a timeout, comes back as an unsuccessful quote.
    """

    name = ""
    display_name = ""

    def __init__(self, api_key: str):
        self.api_key = api_key

    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def fetch(self, client: httpx.AsyncClient, request: OnrampQuoteRequest) -> OnrampQuote:
        raise NotImplementedError

    def success(
        self,
        request: OnrampQuoteRequest,
        crypto_amount: float,
        fees: list[FeeItem],
        total_fees: float | None = None,
        expires_at: str | None = None,
    ) -> OnrampQuote:
        if total_fees is None:
            total_fees = sum(fee.amount for fee in fees)
        return OnrampQuote(
            provider=self.name,
            provider_name=self.display_name,
            fiat_amount=request.fiat_amount,
            fiat_currency=request.fiat_currency,
            crypto_amount=crypto_amount,
            crypto_currency=request.crypto_currency,
            total_fees=total_fees,
            fee_percentage=total_fees / request.fiat_amount * 100,
            fee_breakdown=fees,
            expires_at=expires_at,
            success=True,
            timestamp=now_ms(),
        )

    def failure(self, request: OnrampQuoteRequest, error: str) -> OnrampQuote:
        return OnrampQuote(
            provider=self.name,
            provider_name=self.display_name,
            fiat_amount=request.fiat_amount,
            fiat_currency=request.fiat_currency,
            crypto_currency=request.crypto_currency,
            success=False,
            error=error,
            timestamp=now_ms(),
        )

    async def quote(self, client: httpx.AsyncClient, request: OnrampQuoteRequest) -> OnrampQuote:
        try:
            return await self.fetch(client, request)
        except (httpx.HTTPError, KeyError, TypeError, ValueError) as e:
            logger.warning("%s quote failed: %s", self.display_name, e)
            return self.failure(request, str(e) or type(e).__name__)


class CoinbaseQuoteProvider(HttpQuoteProvider):
    name = "coinbase"
    display_name = "Coinbase"

    async def fetch(self, client, request):
        resp = await client.post(
            "https://api.developer.coinbase.com/onramp/v1/buy/quote",
            headers={"Authorization": f"Bearer {self.api_key}"},
            json={
                "purchase_currency": request.crypto_currency,
                "payment_currency": request.fiat_currency,
                "payment_amount": str(request.fiat_amount),
                "payment_method": request.payment_method.upper(),
                "country": request.country,
            },
        )
        resp.raise_for_status()
        data = resp.json()
        return self.success(
            request,
            crypto_amount=float(data["purchase_amount"]),
            fees=[
                FeeItem(name="Coinbase Fee", amount=float(data["coinbase_fee"]["value"])),
                FeeItem(name="Network Fee", amount=float(data["network_fee"]["value"])),
            ],
            total_fees=float(data["total_fee"]),
        )


class MoonPayQuoteProvider(HttpQuoteProvider):
    name = "moonpay"
    display_name = "MoonPay"

    async def fetch(self, client, request):
        resp = await client.get(
            f"https://api.moonpay.com/v3/currencies/{request.crypto_currency.lower()}/buy_quote",
            headers={"Authorization": f"Api-Key {self.api_key}"},
            params={
                "baseCurrencyAmount": str(request.fiat_amount),
                "baseCurrencyCode": request.fiat_currency.lower(),
                "paymentMethod": "credit_debit_card",
            },
        )
        resp.raise_for_status()
        data = resp.json()
        return self.success(
            request,
            crypto_amount=float(data["quoteCurrencyAmount"]),
            fees=[
                FeeItem(name="MoonPay Fee", amount=float(data["feeAmount"])),
                FeeItem(name="Network Fee", amount=float(data["networkFeeAmount"])),
            ],
            expires_at=data.get("expiresAt"),
        )


class TransakQuoteProvider(HttpQuoteProvider):
    name = "transak"
    display_name = "Transak"

    def __init__(self, api_key: str, network: str = "ethereum"):
        super().__init__(api_key)
        self.network = network

    async def fetch(self, client, request):
        resp = await client.get(
            "https://api.transak.com/api/v2/currencies/price",
            headers={"api-key": self.api_key},
            params={
                "fiatCurrency": request.fiat_currency,
                "cryptoCurrency": request.crypto_currency,
                "fiatAmount": str(request.fiat_amount),
                "paymentMethod": "credit_debit_card",
                "network": self.network,
            },
        )
        resp.raise_for_status()
        data = resp.json()["response"]
        return self.success(
            request,
            crypto_amount=float(data["cryptoAmount"]),
            fees=[FeeItem(name=fee["name"], amount=float(fee["value"])) for fee in data["feeBreakdown"]],
        )


class RampQuoteProvider(HttpQuoteProvider):
    name = "ramp"
    display_name = "Ramp"

    async def fetch(self, client, request):
        resp = await client.get(
            f"https://api.ramp.network/api/host-api/assets/{request.crypto_currency}/price",
            headers={"Authorization": f"Bearer {self.api_key}"},
            params={
                "fiatCurrency": request.fiat_currency,
                "fiatValue": str(request.fiat_amount),
                "paymentMethodType": "CARD",
            },
        )
        resp.raise_for_status()
        data = resp.json()
        fee = float(data["appliedFee"])
        return self.success(
            request,
            crypto_amount=float(data["assetAmount"]),
            fees=[FeeItem(name="Ramp Fee", amount=fee)],
        )


def default_quote_providers() -> list[QuoteProvider]:
    return [
        CoinbaseQuoteProvider(settings.coinbase_onramp_api_key),
        MoonPayQuoteProvider(settings.moonpay_api_key),
        TransakQuoteProvider(settings.transak_api_key),
        RampQuoteProvider(settings.ramp_api_key),
    ]


def quote_cache_key(request: OnrampQuoteRequest) -> str:
    return (
        f"onramp:quote:{request.fiat_amount}_{request.fiat_currency}_"
        f"{request.crypto_currency}_{request.payment_method}_{request.country}"
    )


def _cache_get(key: str) -> Optional[dict[str, Any]]:
    try:
        raw = r.get(key)
    except redis.RedisError as e:
        logger.warning("Quote cache read failed: %s", e)
        return None
    return json.loads(raw) if raw else None


def _cache_put(key: str, response: OnrampQuoteResponse) -> None:
    try:
        r.setex(key, settings.quote_cache_ttl_seconds, response.model_dump_json(by_alias=True))
    except redis.RedisError as e:
        logger.warning("Quote cache write failed: %s", e)


async def compare_quotes(
    providers: Sequence[QuoteProvider],
    request: OnrampQuoteRequest,
    timeout: float | None = None,
) -> OnrampQuoteResponse:
    """
    Fetch quotes from every configured provider concurrently.

    Args:
        providers: Candidate providers; unconfigured ones are skipped
        request: Amount, currencies, payment method and country
        timeout: Per-call timeout in seconds

    Returns:
        Successful quotes, best (largest crypto amount) first
    """
    key = quote_cache_key(request)
    # The redis client is synchronous; keep its round trips off the event loop
    cached = await asyncio.to_thread(_cache_get, key)
    if cached is not None:
        return OnrampQuoteResponse.model_validate(cached)

    active = [p for p in providers if p.is_configured()]
    timeout = settings.onramp_timeout_seconds if timeout is None else timeout
    async with httpx.AsyncClient(timeout=timeout) as client:
        results = await asyncio.gather(*(p.quote(client, request) for p in active))

    quotes = sorted((q for q in results if q.success), key=lambda q: q.crypto_amount, reverse=True)
    response = OnrampQuoteResponse(
        quotes=quotes,
        best_quote=quotes[0] if quotes else None,
        timestamp=now_ms(),
    )
    logger.info(
        "Onramp quotes for %s %s: %d of %d providers answered",
        request.fiat_amount,
        request.fiat_currency,
        len(quotes),
        len(active),
    )
    await asyncio.to_thread(_cache_put, key, response)
    return response


def build_coinbase_onramp_url(
    wallet_address: str,
    amount: float | None = None,
    asset: str = "USDC",
    network: str = "base",
    app_id: str | None = None,
) -> str:
    """
    Build a Coinbase Onramp link that delivers funds to the given wallet.

    Raises:
        InvalidAddress: If the destination is not a 20-byte hex address
        NotConfigured: If no Coinbase app id is set
    """
    if not is_valid_address(wallet_address):
        raise InvalidAddress("Valid wallet address is required")
    app_id = settings.coinbase_app_id if app_id is None else app_id
    if not app_id:
        raise NotConfigured("Coinbase integration not configured")

    destination = [{"address": wallet_address, "blockchains": [network], "assets": [asset]}]
    params = {
        "appId": app_id,
        "destinationWallets": json.dumps(destination, separators=(",", ":")),
        "defaultAsset": asset,
        "defaultNetwork": network,
    }
    if amount:
        params["presetFiatAmount"] = f"{amount:g}"
    params["fiatCurrency"] = "USD"
    return f"{COINBASE_ONRAMP_URL}?{urlencode(params)}"
