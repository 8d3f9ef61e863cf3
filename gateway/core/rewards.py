"""
Reward scoring: map a communication outcome to a karma gain or loss.

classify() picks a label from (channel, channel type); build_event()
looks the label up in POINTS. Failed sends always cost one point.
"""

from gateway.core.models import Channel, DispatchResult, RewardEvent, RewardKind

GENERAL_MESSAGE = "General Message"

POINTS = {
    "Order Update": 2,
    "Delivery Alert": 3,
    "CRM Alert": 1,
    "Quick Notification": 1,
    "Command Response": 2,
    "Fallback Update": 1,
    "Urgent Update": 4,
    "Report": 2,
}
DEFAULT_POINTS = 1
FAILURE_POINTS = -1


def classify(
    channel: Channel,
    channel_type: str | None,
    message_type_hint: str | None = None,
    *,
    subject: str | None = None,
    unified: bool = False,
) -> str:
    """Derive the classification label used to look up reward points.

    Requests through the unified entry use the caller's hint verbatim
    (or "General Message"). Per-channel requests follow the table below;
    email keys off the subject text rather than the channel type.
    """
    if unified:
        return message_type_hint or GENERAL_MESSAGE

    if channel is Channel.EMAIL:
        return "Order Update" if subject and "Order" in subject else "Report"
    if channel is Channel.WHATSAPP:
        return "Delivery Alert" if channel_type == "delivery" else "CRM Alert"
    if channel is Channel.TELEGRAM:
        return "Quick Notification" if channel_type == "notification" else "Command Response"
    if channel is Channel.SMS:
        return "Fallback Update" if channel_type == "fallback" else "Urgent Update"
    return GENERAL_MESSAGE


def points_for(classification: str) -> int:
    return POINTS.get(classification, DEFAULT_POINTS)


def activity_description(channel: Channel, classification: str) -> str:
    return f"Communication via {channel.value}: {classification}"


def build_event(
    user_id: str,
    channel: Channel,
    channel_type: str,
    classification: str,
    result: DispatchResult,
) -> RewardEvent:
    if result.success:
        kind, points = RewardKind.GAIN, points_for(classification)
    else:
        kind, points = RewardKind.LOSS, FAILURE_POINTS

    return RewardEvent(
        user_id=user_id,
        channel=channel,
        channel_type=channel_type,
        classification=classification,
        reward_kind=kind,
        points=points,
        activity_description=activity_description(channel, classification),
        success=result.success,
    )
