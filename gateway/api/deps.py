from fastapi import Request

from gateway.core.orchestrator import GatewayOrchestrator
from gateway.core.publisher import LedgerClient


async def get_orchestrator(request: Request) -> GatewayOrchestrator:
    """Long-lived orchestrator built in the app lifespan."""
    return request.app.state.orchestrator


async def get_ledger_client(request: Request) -> LedgerClient:
    return request.app.state.ledger
