"""
Output router: pick the provider registered for a channel, call it once,
and normalize the outcome into a DispatchResult.
"""

from collections.abc import Mapping

import structlog

from gateway.core.errors import DispatchError, InvalidChannel
from gateway.core.models import Channel, DispatchResult, MessagePayload
from gateway.output.base import MessageProvider

logger = structlog.get_logger()


class ChannelDispatcher:
    def __init__(self, providers: Mapping[Channel, MessageProvider]):
        self._providers = dict(providers)

    @property
    def providers(self) -> dict[Channel, MessageProvider]:
        return dict(self._providers)

    async def dispatch(self, channel: Channel, payload: MessagePayload) -> DispatchResult:
        """Send a validated payload. Raises only for an unregistered channel."""
        provider = self._providers.get(channel)
        if provider is None:
            logger.warning("dispatch.unknown_channel", channel=str(channel))
            raise InvalidChannel(channel, [c.value for c in self._providers])

        log = logger.bind(channel=channel.value, user_id=payload.sanitized()["user_id"])
        try:
            message_id = await provider.send(
                payload.destination, payload.content, payload.resolved_channel_type
            )
        except DispatchError as e:
            log.warning("dispatch.failed", error=str(e), error_type=type(e).__name__)
            return DispatchResult.failed(str(e))
        except Exception as e:
            log.exception("dispatch.failed")
            return DispatchResult.failed(str(e) or type(e).__name__)

        log.info("dispatch.sent", message_id=message_id)
        return DispatchResult.sent(message_id)
