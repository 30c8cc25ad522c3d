"""
Tests for the committed-change feed and LiveQuery.

These run against a private in-memory engine with a plain Session so that
commits are real commits (the shared ``session`` fixture only releases
savepoints).
"""

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from workshop_kernel.db.change_feed import ChangeEvent, ChangeFeed, ChangeOperation, LiveQuery
from workshop_kernel.db.engine import build_engine, create_tables
from workshop_kernel.models.profile import Profile, ProfileRole
from workshop_kernel.services.profile_service import ProfileService


@pytest.fixture
def feed_engine():
    engine = build_engine("sqlite://")
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def feed():
    change_feed = ChangeFeed()
    yield change_feed
    change_feed.detach_all()


@pytest.fixture
def feed_session(feed_engine, feed):
    sess = Session(feed_engine, expire_on_commit=False)
    feed.attach(sess)
    yield sess
    sess.close()


def _add_profile(sess, name="Mark Monteur", email="mark@example.com"):
    return ProfileService(sess).register(name, email, ProfileRole.MECHANIC, approved=True)


# =============================================================================
# Delivery
# =============================================================================


class TestDelivery:

    def test_insert_delivered_after_commit(self, feed, feed_session):
        received: list[ChangeEvent] = []
        feed.subscribe("profiles", received.append)

        profile = _add_profile(feed_session)
        assert received == []

        feed_session.commit()
        assert received == [ChangeEvent("profiles", ChangeOperation.INSERT, profile.id)]

    def test_rollback_discards(self, feed, feed_session):
        received = []
        feed.subscribe("profiles", received.append)

        _add_profile(feed_session)
        feed_session.rollback()
        feed_session.commit()

        assert received == []

    def test_update_and_delete(self, feed, feed_session):
        profile = _add_profile(feed_session)
        feed_session.commit()

        received = []
        feed.subscribe("profiles", received.append)

        profile.full_name = "Mark de Monteur"
        feed_session.commit()
        feed_session.delete(profile)
        feed_session.commit()

        assert [e.operation for e in received] == [ChangeOperation.UPDATE, ChangeOperation.DELETE]
        assert all(e.row_id == profile.id for e in received)

    def test_other_tables_not_delivered(self, feed, feed_session):
        received = []
        feed.subscribe("foh_tasks", received.append)

        _add_profile(feed_session)
        feed_session.commit()
        assert received == []

    def test_operation_filter(self, feed, feed_session):
        inserts, deletes = [], []
        feed.subscribe("profiles", inserts.append, operation="INSERT")
        feed.subscribe("profiles", deletes.append, operation=ChangeOperation.DELETE)

        profile = _add_profile(feed_session)
        feed_session.commit()
        profile.full_name = "Renamed"
        feed_session.commit()

        assert len(inserts) == 1
        assert deletes == []

    def test_bulk_update_reported_without_row(self, feed, feed_session):
        _add_profile(feed_session)
        _add_profile(feed_session, "Mila Monteur", "mila@example.com")
        feed_session.commit()

        received = []
        feed.subscribe("profiles", received.append)
        feed_session.execute(update(Profile).values(is_active=False))
        feed_session.commit()

        assert received == [ChangeEvent("profiles", ChangeOperation.UPDATE, None)]

    def test_unknown_operation_rejected(self, feed):
        with pytest.raises(ValueError):
            feed.subscribe("profiles", lambda e: None, operation="UPSERT")


# =============================================================================
# Subscription management
# =============================================================================


class TestSubscriptions:

    def test_unsubscribe(self, feed, feed_session):
        received = []
        sub = feed.subscribe("profiles", received.append)
        assert feed.subscriber_count == 1

        sub.unsubscribe()
        sub.unsubscribe()
        assert feed.subscriber_count == 0

        _add_profile(feed_session)
        feed_session.commit()
        assert received == []

    def test_failing_subscriber_does_not_block_others(self, feed, captured_logs):
        received = []

        def broken(event):
            raise RuntimeError("subscriber down")

        feed.subscribe("profiles", broken)
        feed.subscribe("profiles", received.append)

        delivered = feed.publish([ChangeEvent("profiles", ChangeOperation.INSERT)])

        assert delivered == 1
        assert len(received) == 1
        failures = [r for r in captured_logs() if r["message"] == "change_subscriber_failed"]
        assert failures[0]["table"] == "profiles"
        assert failures[0]["exc_type"] == "RuntimeError"

    def test_detach_stops_collection(self, feed, feed_session):
        received = []
        feed.subscribe("profiles", received.append)
        feed.detach(feed_session)

        _add_profile(feed_session)
        feed_session.commit()
        assert received == []


# =============================================================================
# LiveQuery
# =============================================================================


class TestLiveQuery:

    def test_refetches_after_commit(self, feed, feed_session):
        def count_profiles():
            return feed_session.execute(select(func.count()).select_from(Profile)).scalar_one()

        live = LiveQuery(feed, ["profiles"], count_profiles)
        assert live.result() == 0
        assert live.result() == 0
        assert live.fetch_count == 1

        _add_profile(feed_session)
        feed_session.commit()

        assert live.is_stale
        assert live.result() == 1
        assert live.fetch_count == 2
        assert live.invalidation_count == 1

    def test_unrelated_table_keeps_cache(self, feed, feed_session):
        live = LiveQuery(feed, ["foh_tasks"], lambda: "cached")
        live.result()

        _add_profile(feed_session)
        feed_session.commit()

        assert not live.is_stale
        assert live.fetch_count == 1

    def test_close_unsubscribes(self, feed):
        live = LiveQuery(feed, ["profiles", "bikes"], lambda: None)
        assert feed.subscriber_count == 2
        live.close()
        assert feed.subscriber_count == 0
