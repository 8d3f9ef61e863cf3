from functools import partial

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse

from gateway.api.deps import get_orchestrator
from gateway.core.models import Channel
from gateway.core.orchestrator import GatewayOrchestrator, SendOutcome
from gateway.schemas.communication import ErrorResponse, SendResponse

router = APIRouter(prefix="/api/communication", tags=["communication"])

FAILURE_STATUS = 500


async def _read_body(request: Request) -> dict | None:
    try:
        body = await request.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


def _invalid_body() -> JSONResponse:
    return JSONResponse(
        status_code=FAILURE_STATUS,
        content=ErrorResponse(error="Request body must be a JSON object").model_dump(),
    )


def _respond(outcome: SendOutcome, echo_channel: bool = False) -> JSONResponse:
    if not outcome.success:
        return JSONResponse(
            status_code=FAILURE_STATUS,
            content=ErrorResponse(error=outcome.error or "Unknown error").model_dump(),
        )

    resp = SendResponse(
        success=True,
        channel=outcome.channel.value if echo_channel and outcome.channel else None,
        message_id=outcome.message_id,
    )
    return JSONResponse(content=resp.model_dump(by_alias=True, exclude_none=True))


async def _send_channel(
    channel: Channel,
    request: Request,
    background_tasks: BackgroundTasks,
    orchestrator: GatewayOrchestrator,
) -> JSONResponse:
    body = await _read_body(request)
    if body is None:
        return _invalid_body()

    # Reward publishing runs after the response has been sent
    schedule = partial(background_tasks.add_task, orchestrator.publisher.publish)
    outcome = await orchestrator.send(channel, body, schedule=schedule)
    return _respond(outcome)


@router.post("/email")
async def send_email(
    request: Request,
    background_tasks: BackgroundTasks,
    orchestrator: GatewayOrchestrator = Depends(get_orchestrator),
):
    return await _send_channel(Channel.EMAIL, request, background_tasks, orchestrator)


@router.post("/whatsapp")
async def send_whatsapp(
    request: Request,
    background_tasks: BackgroundTasks,
    orchestrator: GatewayOrchestrator = Depends(get_orchestrator),
):
    return await _send_channel(Channel.WHATSAPP, request, background_tasks, orchestrator)


@router.post("/telegram")
async def send_telegram(
    request: Request,
    background_tasks: BackgroundTasks,
    orchestrator: GatewayOrchestrator = Depends(get_orchestrator),
):
    return await _send_channel(Channel.TELEGRAM, request, background_tasks, orchestrator)


@router.post("/sms")
async def send_sms(
    request: Request,
    background_tasks: BackgroundTasks,
    orchestrator: GatewayOrchestrator = Depends(get_orchestrator),
):
    return await _send_channel(Channel.SMS, request, background_tasks, orchestrator)


@router.post("/send")
async def send_unified(
    request: Request,
    background_tasks: BackgroundTasks,
    orchestrator: GatewayOrchestrator = Depends(get_orchestrator),
):
    """Unified endpoint: the body names the channel."""
    body = await _read_body(request)
    if body is None:
        return _invalid_body()

    schedule = partial(background_tasks.add_task, orchestrator.publisher.publish)
    outcome = await orchestrator.send_unified(body, schedule=schedule)
    return _respond(outcome, echo_channel=True)
