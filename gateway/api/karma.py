import structlog
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from gateway.api.deps import get_ledger_client
from gateway.core.errors import LedgerError
from gateway.core.ledger import DEFAULT_LEDGER_LIMIT
from gateway.core.publisher import LedgerClient
from gateway.schemas.communication import ErrorResponse

router = APIRouter(prefix="/api/karma", tags=["karma"])
logger = structlog.get_logger()


@router.get("/{user_id}")
async def get_user_karma(
    user_id: str,
    ledger: LedgerClient = Depends(get_ledger_client),
):
    try:
        return await ledger.get_balance(user_id)
    except LedgerError as e:
        logger.warning("karma.balance_failed", user_id=user_id, error=str(e))
        return JSONResponse(status_code=502, content=ErrorResponse(error=str(e)).model_dump())


@router.get("/{user_id}/ledger")
async def get_user_ledger(
    user_id: str,
    limit: int = Query(DEFAULT_LEDGER_LIMIT, ge=1, le=500),
    ledger: LedgerClient = Depends(get_ledger_client),
):
    try:
        return await ledger.get_ledger(user_id, limit=limit)
    except LedgerError as e:
        logger.warning("karma.ledger_failed", user_id=user_id, error=str(e))
        return JSONResponse(status_code=502, content=ErrorResponse(error=str(e)).model_dump())
