# tests/services/test_rsvp_engine.py

from datetime import datetime, timezone

import pytest

from matchup import crud
from matchup.constants.game import GameStatus
from matchup.constants.notification import RealtimeEvent
from matchup.constants.rsvp import RsvpStatus
from matchup.core.errors import (
    AlreadyJoined,
    GameNotFound,
    GameNotJoinable,
    HostCannotLeave,
    NotJoined,
)
from matchup.models.rsvp import Rsvp
from matchup.schemas.game import GameUpdate
from matchup.services.dispatch import EffectDispatcher
from matchup.services.rsvp_engine import RsvpEngine
from tests.utils.auth import make_token
from tests.utils.game import create_random_game, create_user


def _status(db, game_id, user_id):
    db.rollback()
    return crud.rsvp.get_user_rsvp(db, game_id=game_id, user_id=user_id).status


def _events(publisher):
    return [c.args[1] for c in publisher.publish.call_args_list]


# --- JOIN ---
def test_join_confirms_while_slots_remain(rsvp_engine, lifecycle, db):
    game = create_random_game(lifecycle, max_players=3)

    result = rsvp_engine.join(game.id, "u1")

    assert result.status == RsvpStatus.CONFIRMED
    assert result.message == "You have joined the game"
    assert _status(db, game.id, "u1") == RsvpStatus.CONFIRMED


def test_join_never_overbooks(rsvp_engine, lifecycle, db):
    game = create_random_game(lifecycle, max_players=3)

    statuses = [rsvp_engine.join(game.id, f"u{i}").status for i in range(5)]

    # The host holds one of the three slots
    assert statuses == ["confirmed", "confirmed", "waitlisted", "waitlisted", "waitlisted"]
    assert crud.rsvp.count_confirmed(db, game_id=game.id) == 3
    assert len(crud.rsvp.get_waitlist(db, game_id=game.id)) == 3


def test_join_full_game_goes_to_waitlist(rsvp_engine, lifecycle):
    game = create_random_game(lifecycle, max_players=2)
    rsvp_engine.join(game.id, "u1")

    result = rsvp_engine.join(game.id, "u2")

    assert result.status == RsvpStatus.WAITLISTED
    assert result.message == "You have been added to the waitlist"


def test_join_twice_is_rejected_without_changes(rsvp_engine, lifecycle, db, publisher, notifier):
    game = create_random_game(lifecycle, max_players=2)
    rsvp_engine.join(game.id, "u1")
    rsvp_engine.join(game.id, "u2")
    publisher.reset_mock()
    notifier.reset_mock()

    with pytest.raises(AlreadyJoined):
        rsvp_engine.join(game.id, "u1")
    with pytest.raises(AlreadyJoined) as exc_info:
        rsvp_engine.join(game.id, "u2")

    assert exc_info.value.details["rsvpStatus"] == RsvpStatus.WAITLISTED
    assert crud.rsvp.count_confirmed(db, game_id=game.id) == 2
    assert len(crud.rsvp.get_waitlist(db, game_id=game.id)) == 1
    publisher.publish.assert_not_called()
    notifier.deliver.assert_not_called()


def test_host_is_confirmed_on_creation_and_cannot_join_again(rsvp_engine, lifecycle, db):
    game = create_random_game(lifecycle, host_id="host", max_players=2)

    assert _status(db, game.id, "host") == RsvpStatus.CONFIRMED
    assert crud.rsvp.count_confirmed(db, game_id=game.id) == 1
    with pytest.raises(AlreadyJoined):
        rsvp_engine.join(game.id, "host")


def test_join_unknown_game(rsvp_engine):
    with pytest.raises(GameNotFound):
        rsvp_engine.join("gam_missing", "u1")


@pytest.mark.parametrize("status", [GameStatus.IN_PROGRESS, GameStatus.CANCELLED])
def test_join_requires_upcoming_game(rsvp_engine, lifecycle, status):
    game = create_random_game(lifecycle, host_id="host")
    lifecycle.update_game(make_token("host"), game.id, GameUpdate(status=status))

    with pytest.raises(GameNotJoinable):
        rsvp_engine.join(game.id, "u1")


def test_join_broadcasts_identity_and_notifies_host(rsvp_engine, lifecycle, db, publisher, notifier):
    create_user(db, "u1", name="Ada", avatar="https://cdn.example.com/ada.png")
    game = create_random_game(lifecycle, host_id="host", max_players=2)

    rsvp_engine.join(game.id, "u1")

    publisher.publish.assert_called_once_with(
        game.id,
        RealtimeEvent.PLAYER_JOINED,
        {
            "user": {"id": "u1", "name": "Ada", "avatar": "https://cdn.example.com/ada.png"},
            "status": "confirmed",
        },
    )
    intent = notifier.deliver.call_args.args[0]
    assert intent.recipient_id == "host"
    assert intent.title == "New Player Joined"
    assert intent.body == "Ada joined Sunday 5-a-side"
    assert intent.data["gameId"] == game.id


def test_waitlisted_join_tells_host_about_waitlist(rsvp_engine, lifecycle, db, notifier):
    create_user(db, "u2", name="Grace")
    game = create_random_game(lifecycle, max_players=2)
    rsvp_engine.join(game.id, "u1")
    notifier.reset_mock()

    rsvp_engine.join(game.id, "u2")

    intent = notifier.deliver.call_args.args[0]
    assert intent.body == "Grace is on the waitlist for Sunday 5-a-side"


def test_join_survives_publish_failure(db, lifecycle, notifier):
    failing = EffectDispatcher(publisher=_Exploding(), notifier=notifier)
    game = create_random_game(lifecycle, max_players=3)

    result = RsvpEngine(db, failing).join(game.id, "u1")

    assert result.status == RsvpStatus.CONFIRMED
    notifier.deliver.assert_called_once()


class _Exploding:
    def publish(self, game_id, event, payload):
        raise RuntimeError("socket layer down")


# --- LEAVE ---
def test_leave_promotes_oldest_waitlisted(rsvp_engine, lifecycle, db, publisher, notifier):
    game = create_random_game(lifecycle, max_players=2)
    rsvp_engine.join(game.id, "u1")
    rsvp_engine.join(game.id, "u2")
    rsvp_engine.join(game.id, "u3")
    publisher.reset_mock()
    notifier.reset_mock()

    result = rsvp_engine.leave(game.id, "u1")

    assert result.message == "You have left the game"
    assert result.promoted_user_id == "u2"
    assert _status(db, game.id, "u1") == RsvpStatus.CANCELLED
    assert _status(db, game.id, "u2") == RsvpStatus.CONFIRMED
    assert _status(db, game.id, "u3") == RsvpStatus.WAITLISTED
    assert _events(publisher) == [RealtimeEvent.PLAYER_LEFT, RealtimeEvent.PLAYER_PROMOTED]
    assert publisher.publish.call_args_list[0].args[2] == {"userId": "u1"}
    assert publisher.publish.call_args_list[1].args[2] == {"userId": "u2"}

    intent = notifier.deliver.call_args.args[0]
    assert intent.recipient_id == "u2"
    assert intent.title == "Spot Available!"


def test_leave_promotes_by_queue_order_when_join_times_tie(rsvp_engine, lifecycle, db):
    game = create_random_game(lifecycle, max_players=2)
    rsvp_engine.join(game.id, "u1")
    same_instant = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)
    for user_id, queue_seq in [("late", 9), ("early", 3)]:
        db.add(
            Rsvp(
                game_id=game.id,
                user_id=user_id,
                status=RsvpStatus.WAITLISTED,
                created_at=same_instant,
                queue_seq=queue_seq,
            )
        )
    db.commit()

    result = rsvp_engine.leave(game.id, "u1")

    assert result.promoted_user_id == "early"
    assert _status(db, game.id, "late") == RsvpStatus.WAITLISTED


def test_leave_without_promotion_events(db, lifecycle, dispatcher, publisher):
    engine = RsvpEngine(db, dispatcher, emit_promotion_events=False)
    game = create_random_game(lifecycle, max_players=2)
    engine.join(game.id, "u1")
    engine.join(game.id, "u2")
    publisher.reset_mock()

    engine.leave(game.id, "u1")

    assert _events(publisher) == [RealtimeEvent.PLAYER_LEFT]
    assert _status(db, game.id, "u2") == RsvpStatus.CONFIRMED


def test_waitlisted_leave_promotes_nobody(rsvp_engine, lifecycle, db):
    game = create_random_game(lifecycle, max_players=2)
    rsvp_engine.join(game.id, "u1")
    rsvp_engine.join(game.id, "u2")
    rsvp_engine.join(game.id, "u3")

    result = rsvp_engine.leave(game.id, "u2")

    assert result.promoted_user_id is None
    assert _status(db, game.id, "u3") == RsvpStatus.WAITLISTED
    assert crud.rsvp.count_confirmed(db, game_id=game.id) == 2


def test_promotion_is_strict_fifo(rsvp_engine, lifecycle, db):
    game = create_random_game(lifecycle, max_players=3)
    for user_id in ["u1", "u2", "w1", "w2", "w3"]:
        rsvp_engine.join(game.id, user_id)

    promoted = [
        rsvp_engine.leave(game.id, "u1").promoted_user_id,
        rsvp_engine.leave(game.id, "u2").promoted_user_id,
        rsvp_engine.leave(game.id, "w1").promoted_user_id,
    ]

    assert promoted == ["w1", "w2", "w3"]


def test_rejoin_goes_to_back_of_waitlist(rsvp_engine, lifecycle, db):
    game = create_random_game(lifecycle, max_players=2)
    rsvp_engine.join(game.id, "u1")
    rsvp_engine.join(game.id, "u2")
    rsvp_engine.join(game.id, "u3")

    rsvp_engine.leave(game.id, "u2")
    assert rsvp_engine.join(game.id, "u2").status == RsvpStatus.WAITLISTED

    assert rsvp_engine.leave(game.id, "u1").promoted_user_id == "u3"
    db.rollback()
    waitlist = crud.rsvp.get_waitlist(db, game_id=game.id)
    assert [row.user_id for row in waitlist] == ["u2"]


def test_rejoin_reuses_cancelled_row(rsvp_engine, lifecycle, db):
    game = create_random_game(lifecycle, max_players=4)
    rsvp_engine.join(game.id, "u1")
    db.rollback()
    first_id = crud.rsvp.get_user_rsvp(db, game_id=game.id, user_id="u1").id

    rsvp_engine.leave(game.id, "u1")
    rsvp_engine.join(game.id, "u1")

    db.rollback()
    row = crud.rsvp.get_user_rsvp(db, game_id=game.id, user_id="u1")
    assert row.id == first_id
    assert row.status == RsvpStatus.CONFIRMED
    assert row.cancelled_at is None


@pytest.mark.parametrize("status", [GameStatus.UPCOMING, GameStatus.COMPLETED, GameStatus.CANCELLED])
def test_host_cannot_leave_in_any_state(rsvp_engine, lifecycle, status):
    game = create_random_game(lifecycle, host_id="host")
    if status != GameStatus.UPCOMING:
        lifecycle.update_game(make_token("host"), game.id, GameUpdate(status=status))

    with pytest.raises(HostCannotLeave):
        rsvp_engine.leave(game.id, "host")


def test_leave_requires_active_rsvp(rsvp_engine, lifecycle):
    game = create_random_game(lifecycle)

    with pytest.raises(NotJoined):
        rsvp_engine.leave(game.id, "stranger")

    rsvp_engine.join(game.id, "u1")
    rsvp_engine.leave(game.id, "u1")
    with pytest.raises(NotJoined):
        rsvp_engine.leave(game.id, "u1")


def test_leave_unknown_game(rsvp_engine):
    with pytest.raises(GameNotFound):
        rsvp_engine.leave("gam_missing", "u1")


def test_leave_after_game_started_does_not_promote(rsvp_engine, lifecycle, db):
    game = create_random_game(lifecycle, host_id="host", max_players=2)
    rsvp_engine.join(game.id, "u1")
    rsvp_engine.join(game.id, "u2")
    lifecycle.update_game(make_token("host"), game.id, GameUpdate(status=GameStatus.IN_PROGRESS))

    result = rsvp_engine.leave(game.id, "u1")

    assert result.promoted_user_id is None
    assert _status(db, game.id, "u2") == RsvpStatus.WAITLISTED
