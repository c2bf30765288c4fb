from fastapi import APIRouter, Depends

from yuki.core.config import settings
from yuki.core.deps import get_quote_providers
from yuki.schemas.onramp import (
    CoinbaseOnrampRequest,
    CoinbaseOnrampResponse,
    CoinbaseOnrampStatus,
    OnrampQuoteRequest,
    OnrampQuoteResponse,
)
from yuki.services.onramp import (
    COINBASE_SUPPORTED_ASSETS,
    COINBASE_SUPPORTED_NETWORKS,
    QuoteProvider,
    build_coinbase_onramp_url,
    compare_quotes,
)

router = APIRouter()


@router.post("/onramp/quote", response_model=OnrampQuoteResponse)
async def onramp_quote(
    payload: OnrampQuoteRequest,
    providers: list[QuoteProvider] = Depends(get_quote_providers),
):
    return await compare_quotes(providers, payload)


@router.post("/onramp/coinbase", response_model=CoinbaseOnrampResponse)
def coinbase_onramp(payload: CoinbaseOnrampRequest):
    url = build_coinbase_onramp_url(
        payload.wallet_address,
        amount=payload.amount,
        asset=payload.asset,
        network=payload.network,
    )
    return CoinbaseOnrampResponse(onramp_url=url, wallet_address=payload.wallet_address)


@router.get("/onramp/coinbase", response_model=CoinbaseOnrampStatus)
def coinbase_onramp_status():
    return CoinbaseOnrampStatus(
        available=bool(settings.coinbase_app_id),
        supported_assets=COINBASE_SUPPORTED_ASSETS,
        supported_networks=COINBASE_SUPPORTED_NETWORKS,
    )
