from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from app.services.quotes import get_quote_client, QuoteNotFoundError, QuoteProviderError, YahooQuoteClient

router = APIRouter()

@router.get("/{symbol}")
def get_quote(symbol: str, client: YahooQuoteClient = Depends(get_quote_client)):
    try:
        quote = client.get_quote(symbol)
    except QuoteNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except QuoteProviderError as e:
        logger.exception(f"Quote error for '{symbol}': {e}")
        raise HTTPException(status_code=502, detail=str(e))
    return quote.model_dump(by_alias=True)
