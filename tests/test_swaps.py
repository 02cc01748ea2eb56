"""
Tests for the swap request lifecycle.

Covers the single-pending invariant, the status state machine, who may
drive each transition, deletion rules and the notifications each step emits.
"""
import pytest
from sqlalchemy import func, select

from skillswap.core.exceptions import (
    AuthorizationError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from skillswap.models import Conversation, Notification, SwapRating, SwapRequest, User
from skillswap.schemas.swap import SwapRequestUpdate
from skillswap.services.rating_service import RatingService, rating_aggregate


def pending_count(db, requester, target):
    return db.scalar(
        select(func.count(SwapRequest.id)).where(
            SwapRequest.requester_id == requester.id,
            SwapRequest.target_id == target.id,
            SwapRequest.status == "pending",
        )
    )


def notifications_for(db, user, type=None):
    query = select(Notification).where(Notification.user_id == user.id)
    if type:
        query = query.where(Notification.type == type)
    return list(db.scalars(query.order_by(Notification.created_at)))


# =============================================================================
# CREATE
# =============================================================================

def test_create_starts_pending(swaps, alice, bob):
    swap = swaps.create(alice.id, bob.id, "Python", "Guitar", message="Fancy a trade?")

    assert swap.id
    assert swap.status == "pending"
    assert swap.requester_id == alice.id
    assert swap.target_id == bob.id
    assert swap.message == "Fancy a trade?"
    assert swap.created_at is not None
    assert swap.updated_at is not None


def test_create_notifies_target(db, swaps, alice, bob):
    swap = swaps.create(alice.id, bob.id, "Python", "Guitar")

    received = notifications_for(db, bob, type="swap_request")
    assert len(received) == 1
    assert received[0].related_id == swap.id
    assert received[0].is_read is False
    assert "Alice" in received[0].content
    assert notifications_for(db, alice, type="swap_request") == []


def test_create_strips_skill_names(swaps, alice, bob):
    swap = swaps.create(alice.id, bob.id, "  Python ", " Guitar")
    assert swap.sender_skill == "Python"
    assert swap.receiver_skill == "Guitar"


def test_cannot_request_self(swaps, alice):
    with pytest.raises(ValidationError):
        swaps.create(alice.id, alice.id, "Python", "Guitar")


@pytest.mark.parametrize("sender_skill,receiver_skill", [
    ("", "Guitar"),
    ("Python", "   "),
    (None, "Guitar"),
])
def test_blank_skills_rejected(db, swaps, alice, bob, sender_skill, receiver_skill):
    with pytest.raises(ValidationError):
        swaps.create(alice.id, bob.id, sender_skill, receiver_skill)
    assert pending_count(db, alice, bob) == 0


def test_unknown_target(swaps, alice):
    with pytest.raises(NotFoundError):
        swaps.create(alice.id, "no-such-user", "Python", "Guitar")


def test_new_request_supersedes_pending(db, swaps, alice, bob):
    first = swaps.create(alice.id, bob.id, "Python", "Guitar")
    first_id = first.id
    second = swaps.create(alice.id, bob.id, "Excel", "Spanish")

    assert pending_count(db, alice, bob) == 1
    assert db.get(SwapRequest, first_id) is None
    assert db.get(SwapRequest, second.id).sender_skill == "Excel"


def test_repeated_creates_keep_one_pending(db, swaps, alice, bob):
    for skill in ("Python", "SQL", "Excel", "SEO", "Piano"):
        swaps.create(alice.id, bob.id, skill, "Guitar")
    assert pending_count(db, alice, bob) == 1


def test_supersede_is_per_ordered_pair(db, swaps, alice, bob, carol):
    swaps.create(alice.id, bob.id, "Python", "Guitar")
    swaps.create(bob.id, alice.id, "Guitar", "Python")
    swaps.create(alice.id, carol.id, "Python", "Yoga")

    assert pending_count(db, alice, bob) == 1
    assert pending_count(db, bob, alice) == 1
    assert pending_count(db, alice, carol) == 1


def test_supersede_leaves_non_pending_requests(db, swaps, make_swap, alice, bob):
    accepted = make_swap(alice, bob, status="accepted")
    swaps.create(alice.id, bob.id, "Excel", "Spanish")

    assert db.get(SwapRequest, accepted.id).status == "accepted"
    assert pending_count(db, alice, bob) == 1


# =============================================================================
# STATUS TRANSITIONS
# =============================================================================

# (from, to, actor) -> outcome; actor is "requester", "target"
TRANSITION_GRID = [
    ("pending", "accepted", "target", None),
    ("pending", "rejected", "target", None),
    ("pending", "cancelled", "requester", None),
    ("pending", "accepted", "requester", AuthorizationError),
    ("pending", "rejected", "requester", AuthorizationError),
    ("pending", "cancelled", "target", AuthorizationError),
    ("pending", "completed", "target", InvalidTransitionError),
    ("pending", "pending", "requester", InvalidTransitionError),
    ("accepted", "completed", "requester", None),
    ("accepted", "completed", "target", None),
    ("accepted", "cancelled", "requester", None),
    ("accepted", "cancelled", "target", AuthorizationError),
    ("accepted", "rejected", "target", InvalidTransitionError),
    ("accepted", "pending", "target", InvalidTransitionError),
    ("rejected", "accepted", "target", InvalidTransitionError),
    ("rejected", "cancelled", "requester", InvalidTransitionError),
    ("completed", "accepted", "target", InvalidTransitionError),
    ("completed", "cancelled", "requester", InvalidTransitionError),
    ("cancelled", "pending", "requester", InvalidTransitionError),
    ("cancelled", "accepted", "target", InvalidTransitionError),
]


@pytest.mark.parametrize("from_status,to_status,actor,error", TRANSITION_GRID)
def test_transition_grid(db, swaps, make_swap, alice, bob, from_status, to_status, actor, error):
    swap = make_swap(alice, bob, status=from_status)
    before = swap.updated_at
    acting = alice if actor == "requester" else bob

    if error is None:
        updated = swaps.update_status(swap.id, to_status, acting.id)
        assert updated.status == to_status
        assert updated.updated_at >= before
    else:
        with pytest.raises(error):
            swaps.update_status(swap.id, to_status, acting.id)
        db.expire_all()
        assert db.get(SwapRequest, swap.id).status == from_status


def test_outsider_cannot_change_status(db, swaps, make_swap, alice, bob, carol):
    swap = make_swap(alice, bob)

    with pytest.raises(AuthorizationError):
        swaps.update_status(swap.id, "accepted", carol.id)

    db.expire_all()
    assert db.get(SwapRequest, swap.id).status == "pending"


def test_update_status_unknown_request(swaps, alice):
    with pytest.raises(NotFoundError):
        swaps.update_status("missing", "accepted", alice.id)


def test_invalid_transition_error_carries_statuses(swaps, make_swap, alice, bob):
    swap = make_swap(alice, bob, status="completed")

    with pytest.raises(InvalidTransitionError) as exc_info:
        swaps.update_status(swap.id, "accepted", bob.id)

    assert exc_info.value.current_status == "completed"
    assert exc_info.value.new_status == "accepted"


def test_status_change_notifies_other_party(db, swaps, make_swap, alice, bob):
    swap = make_swap(alice, bob)

    swaps.update_status(swap.id, "accepted", bob.id)

    to_alice = notifications_for(db, alice, type="swap_request")
    assert len(to_alice) == 1
    assert to_alice[0].title == "Swap Request Accepted"
    assert to_alice[0].related_id == swap.id


def test_accept_opens_conversation(db, swaps, make_swap, alice, bob):
    swap = make_swap(alice, bob)

    swaps.update_status(swap.id, "accepted", bob.id)

    conversation = db.scalar(select(Conversation))
    assert conversation is not None
    assert conversation.swap_request_id == swap.id
    assert {conversation.participant1_id, conversation.participant2_id} == {alice.id, bob.id}


def test_accept_reuses_existing_conversation(db, swaps, alice, bob):
    first = swaps.create(alice.id, bob.id, "Python", "Guitar")
    swaps.update_status(first.id, "accepted", bob.id)
    second = swaps.create(bob.id, alice.id, "Piano", "SQL")
    swaps.update_status(second.id, "accepted", alice.id)

    assert db.scalar(select(func.count(Conversation.id))) == 1


# =============================================================================
# EDIT
# =============================================================================

def test_requester_edits_pending_request(swaps, make_swap, alice, bob):
    swap = make_swap(alice, bob)

    updated = swaps.update_details(swap.id, alice.id, SwapRequestUpdate(receiver_skill="Piano", message="Or piano?"))

    assert updated.sender_skill == "Python"
    assert updated.receiver_skill == "Piano"
    assert updated.message == "Or piano?"


def test_target_cannot_edit(swaps, make_swap, alice, bob):
    swap = make_swap(alice, bob)
    with pytest.raises(AuthorizationError):
        swaps.update_details(swap.id, bob.id, SwapRequestUpdate(message="hijack"))


def test_cannot_edit_after_accept(swaps, make_swap, alice, bob):
    swap = make_swap(alice, bob, status="accepted")
    with pytest.raises(InvalidTransitionError):
        swaps.update_details(swap.id, alice.id, SwapRequestUpdate(message="too late"))


def test_edit_rejects_blank_skill(swaps, make_swap, alice, bob):
    swap = make_swap(alice, bob)
    with pytest.raises(ValidationError):
        swaps.update_details(swap.id, alice.id, SwapRequestUpdate(sender_skill=" "))


# =============================================================================
# DELETE
# =============================================================================

@pytest.mark.parametrize("status", ["pending", "accepted", "completed", "rejected", "cancelled"])
def test_requester_deletes_in_any_status(db, swaps, make_swap, alice, bob, status):
    swap = make_swap(alice, bob, status=status)
    swap_id = swap.id

    assert swaps.delete(swap_id, alice.id) is True
    assert db.get(SwapRequest, swap_id) is None


def test_target_deletes_pending(db, swaps, make_swap, alice, bob):
    swap = make_swap(alice, bob)
    swap_id = swap.id

    assert swaps.delete(swap_id, bob.id) is True
    assert db.get(SwapRequest, swap_id) is None


@pytest.mark.parametrize("status", ["accepted", "completed"])
def test_target_cannot_delete_after_pending(db, swaps, make_swap, alice, bob, status):
    swap = make_swap(alice, bob, status=status)

    with pytest.raises(AuthorizationError):
        swaps.delete(swap.id, bob.id)
    assert db.get(SwapRequest, swap.id) is not None


def test_outsider_cannot_delete(db, swaps, make_swap, alice, bob, carol):
    swap = make_swap(alice, bob)

    with pytest.raises(AuthorizationError):
        swaps.delete(swap.id, carol.id)
    assert db.get(SwapRequest, swap.id) is not None


def test_delete_missing_returns_false(swaps, make_swap, alice, bob):
    swap = make_swap(alice, bob)
    swap_id = swap.id

    assert swaps.delete(swap_id, alice.id) is True
    assert swaps.delete(swap_id, alice.id) is False


@pytest.fixture
def foreign_keys(engine):
    """Enforce foreign keys so ON DELETE actions run as they do on PostgreSQL."""
    with engine.connect() as connection:
        connection.exec_driver_sql("PRAGMA foreign_keys=ON")
    return engine


def test_delete_recomputes_rating_aggregates(foreign_keys, db, swaps, make_swap, alice, bob, carol):
    alice_id, bob_id = alice.id, bob.id
    rated = make_swap(alice, bob, status="completed")
    other = make_swap(carol, bob, status="completed")
    rated_id = rated.id
    RatingService(db).submit(rated_id, alice_id, bob_id, 5, "post_completion")
    RatingService(db).submit(rated_id, bob_id, alice_id, 4, "post_completion")
    RatingService(db).submit(other.id, carol.id, bob_id, 2, "post_completion")

    assert swaps.delete(rated_id, alice_id) is True

    assert db.scalar(select(func.count(SwapRating.id)).where(SwapRating.swap_request_id == rated_id)) == 0
    bob = db.get(User, bob_id)
    alice = db.get(User, alice_id)
    assert (bob.rating, bob.review_count) == (2.0, 1)
    assert (alice.rating, alice.review_count) == (0.0, 0)
    assert rating_aggregate(db, bob_id) == (2.0, 1)


def test_delete_detaches_conversation(db, swaps, make_swap, alice, bob):
    swap = make_swap(alice, bob)
    swap_id = swap.id
    swaps.update_status(swap_id, "accepted", bob.id)

    assert swaps.delete(swap_id, alice.id) is True

    conversation = db.scalar(select(Conversation))
    assert conversation is not None
    assert conversation.swap_request_id is None


# =============================================================================
# QUERY
# =============================================================================

def test_list_for_user_covers_both_directions(swaps, alice, bob, carol):
    sent = swaps.create(alice.id, bob.id, "Python", "Guitar")
    received = swaps.create(carol.id, alice.id, "Yoga", "Python")
    swaps.create(bob.id, carol.id, "Guitar", "Yoga")

    listed = swaps.list_for_user(alice.id)

    assert [swap.id for swap in listed] == [received.id, sent.id]
    assert listed[0].requester.name == "Carol"
    assert listed[1].target.name == "Bob"


def test_get_is_limited_to_parties(swaps, make_swap, alice, bob, carol):
    swap = make_swap(alice, bob)

    assert swaps.get(swap.id, bob.id).id == swap.id
    with pytest.raises(AuthorizationError):
        swaps.get(swap.id, carol.id)


# =============================================================================
# END-TO-END SCENARIO
# =============================================================================

def test_alice_and_bob_scenario(db, swaps, alice, bob):
    first = swaps.create(alice.id, bob.id, "Python", "Guitar")
    assert first.status == "pending"
    first_id = first.id

    second = swaps.create(alice.id, bob.id, "Excel", "Spanish")
    assert db.get(SwapRequest, first_id) is None
    assert pending_count(db, alice, bob) == 1

    assert swaps.update_status(second.id, "accepted", bob.id).status == "accepted"
    assert swaps.update_status(second.id, "completed", alice.id).status == "completed"

    RatingService(db).submit(second.id, alice.id, bob.id, 5, "post_completion")
    db.refresh(bob)
    assert bob.rating == 5.0
    assert bob.review_count == 1

    with pytest.raises(InvalidTransitionError):
        swaps.update_status(second.id, "accepted", bob.id)
    assert db.get(SwapRequest, second.id).status == "completed"
