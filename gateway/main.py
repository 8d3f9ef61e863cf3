import logging
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from gateway.api.communication import router as communication_router
from gateway.api.karma import router as karma_router
from gateway.config import settings
from gateway.core.ledger import KarmaLedgerClient
from gateway.core.models import Channel
from gateway.core.orchestrator import GatewayOrchestrator
from gateway.core.publisher import RewardPublisher
from gateway.middleware.error_handler import global_exception_handler
from gateway.middleware.logging import LoggingMiddleware
from gateway.output.email import EmailProvider
from gateway.output.router import ChannelDispatcher
from gateway.output.sms import SmsProvider
from gateway.output.telegram import TelegramProvider
from gateway.output.whatsapp import WhatsAppProvider
from gateway.schemas.communication import HealthOut


logger = structlog.get_logger()

SERVICE_NAME = "Logistics Manager Communication Service"


def configure_logging():
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            (
                structlog.dev.ConsoleRenderer()
                if settings.APP_ENV == "development"
                else structlog.processors.JSONRenderer()
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.LOG_LEVEL.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def build_providers() -> dict:
    return {
        Channel.EMAIL: EmailProvider(),
        Channel.WHATSAPP: WhatsAppProvider(),
        Channel.TELEGRAM: TelegramProvider(),
        Channel.SMS: SmsProvider(),
    }


def _warn_unconfigured_channels():
    for channel in Channel:
        missing = settings.missing_for(channel.value)
        if missing:
            logger.warning("config.channel_unconfigured", channel=channel.value, missing=missing)
    if not settings.KARMA_TRACKER_API_KEY:
        logger.warning("config.karma_tracker_unconfigured")


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("app.startup", env=settings.APP_ENV)
    _warn_unconfigured_channels()

    providers = build_providers()
    for provider in providers.values():
        await provider.initialize()

    ledger = KarmaLedgerClient()
    await ledger.initialize()

    publisher = RewardPublisher(ledger)
    app.state.ledger = ledger
    app.state.orchestrator = GatewayOrchestrator(ChannelDispatcher(providers), publisher)

    yield

    # Shutdown
    await publisher.drain()
    await ledger.shutdown()
    for provider in providers.values():
        await provider.shutdown()
    logger.info("app.shutdown")


app = FastAPI(title="Communication Gateway", lifespan=lifespan)

# Middleware
app.add_middleware(LoggingMiddleware)

# Exception handler
app.add_exception_handler(Exception, global_exception_handler)

# Routes
app.include_router(communication_router)
app.include_router(karma_router)


@app.get("/health", response_model=HealthOut)
async def health():
    return HealthOut(
        status="ok",
        message=f"{SERVICE_NAME} is running",
        services=settings.service_summary(),
    )
