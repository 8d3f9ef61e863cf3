"""
Request pipeline: validate -> dispatch -> classify -> build reward -> publish.

The caller's outcome is fixed once dispatch returns. Reward publishing is
handed to a scheduler and never awaited here, so a slow or failing ledger
cannot change or delay the response.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

import structlog

from gateway.core import rewards
from gateway.core.errors import ValidationError
from gateway.core.models import Channel, MessagePayload, RewardEvent, escape_html
from gateway.core.publisher import RewardPublisher
from gateway.core.validator import validate, validate_unified
from gateway.output.router import ChannelDispatcher

logger = structlog.get_logger()

UNIFIED_CHANNEL_TYPE = "general"

ScheduleFn = Callable[[RewardEvent], Any]


@dataclass(frozen=True)
class SendOutcome:
    success: bool
    channel: Channel | None = None
    message_id: str | None = None
    error: str | None = None
    reward_event: RewardEvent | None = None


class GatewayOrchestrator:
    def __init__(self, dispatcher: ChannelDispatcher, publisher: RewardPublisher):
        self.dispatcher = dispatcher
        self.publisher = publisher

    async def send(
        self,
        channel: Channel | str,
        raw: Mapping[str, Any],
        schedule: ScheduleFn | None = None,
    ) -> SendOutcome:
        """Per-channel entry point (/email, /whatsapp, /telegram, /sms)."""
        return await self._run(lambda: validate(channel, raw), unified=False, schedule=schedule)

    async def send_unified(
        self,
        raw: Mapping[str, Any],
        schedule: ScheduleFn | None = None,
    ) -> SendOutcome:
        """Unified entry point; the channel comes from the body."""
        return await self._run(lambda: validate_unified(raw), unified=True, schedule=schedule)

    async def _run(
        self,
        validate_fn: Callable[[], MessagePayload],
        unified: bool,
        schedule: ScheduleFn | None,
    ) -> SendOutcome:
        try:
            payload = validate_fn()
        except ValidationError as e:
            logger.info("validation.failed", error=str(e), field=e.field, unified=unified)
            return SendOutcome(success=False, error=str(e))

        try:
            result = await self.dispatcher.dispatch(payload.channel, payload)
        except ValidationError as e:
            return SendOutcome(success=False, error=str(e))

        event = self._build_reward(payload, result, unified)
        self._schedule_reward(event, schedule)

        if not result.success:
            return SendOutcome(
                success=False, channel=payload.channel, error=result.failure_reason, reward_event=event
            )
        return SendOutcome(
            success=True,
            channel=payload.channel,
            message_id=result.provider_message_id,
            reward_event=event,
        )

    def _build_reward(self, payload: MessagePayload, result, unified: bool) -> RewardEvent:
        safe = payload.sanitized()
        if unified:
            channel_type = safe["channel_type"] or UNIFIED_CHANNEL_TYPE
        else:
            channel_type = escape_html(payload.resolved_channel_type)

        classification = rewards.classify(
            payload.channel,
            payload.resolved_channel_type,
            safe["message_type_hint"],
            subject=getattr(payload, "subject", None),
            unified=unified,
        )
        return rewards.build_event(
            safe["user_id"], payload.channel, channel_type, classification, result
        )

    def _schedule_reward(self, event: RewardEvent, schedule: ScheduleFn | None):
        try:
            (schedule or self.publisher.schedule)(event)
        except Exception:
            logger.exception("reward.schedule_failed", user_id=event.user_id)
