# matchup/services/notification_policy.py
"""
Who gets told what when a game or its roster changes.

Pure functions: they only compute `NotificationIntent`s. Delivery is the
job of `NotificationService`, scheduled by the `EffectDispatcher` after
the transaction that caused the change has committed.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from matchup.constants.notification import NotificationType
from matchup.constants.rsvp import RsvpStatus


@dataclass(frozen=True)
class NotificationIntent:
    recipient_id: str
    title: str
    body: str
    type: str
    data: Dict[str, Any] = field(default_factory=dict)


def player_joined(
    *,
    game_id: str,
    game_title: str,
    host_id: str,
    player_id: str,
    player_name: Optional[str],
    status: str,
) -> List[NotificationIntent]:
    """Tell the host someone joined; hosts are not told about themselves."""
    if player_id == host_id:
        return []

    name = player_name or "A player"
    if status == RsvpStatus.WAITLISTED:
        body = f"{name} is on the waitlist for {game_title}"
    else:
        body = f"{name} joined {game_title}"

    return [
        NotificationIntent(
            recipient_id=host_id,
            title="New Player Joined",
            body=body,
            type=NotificationType.RSVP_UPDATE,
            data={"gameId": game_id, "userId": player_id, "status": status},
        )
    ]


def player_promoted(*, game_id: str, game_title: str, player_id: str) -> List[NotificationIntent]:
    return [
        NotificationIntent(
            recipient_id=player_id,
            title="Spot Available!",
            body=f"You've been moved from the waitlist to confirmed for {game_title}",
            type=NotificationType.RSVP_UPDATE,
            data={"gameId": game_id},
        )
    ]


def _distinct_recipients(participant_ids: Iterable[str], actor_id: Optional[str]) -> List[str]:
    seen = set()
    recipients = []
    for participant_id in participant_ids:
        if participant_id == actor_id or participant_id in seen:
            continue
        seen.add(participant_id)
        recipients.append(participant_id)
    return recipients


def game_cancelled(
    *,
    game_id: str,
    game_title: str,
    participant_ids: Iterable[str],
    actor_id: Optional[str],
) -> List[NotificationIntent]:
    """
    One intent per confirmed or waitlisted participant, minus the actor.

    `participant_ids` must already be limited to those two statuses.
    """
    return [
        NotificationIntent(
            recipient_id=recipient_id,
            title="Game Cancelled",
            body=f"{game_title} has been cancelled",
            type=NotificationType.GAME_UPDATE,
            data={"gameId": game_id},
        )
        for recipient_id in _distinct_recipients(participant_ids, actor_id)
    ]


def game_rescheduled(
    *,
    game_id: str,
    game_title: str,
    participant_ids: Iterable[str],
    actor_id: Optional[str],
) -> List[NotificationIntent]:
    """One intent per confirmed participant, minus the actor."""
    return [
        NotificationIntent(
            recipient_id=recipient_id,
            title="Game Updated",
            body=f"{game_title} has been updated. Check the new details.",
            type=NotificationType.GAME_UPDATE,
            data={"gameId": game_id},
        )
        for recipient_id in _distinct_recipients(participant_ids, actor_id)
    ]
