#!/usr/bin/env python3
"""Tests for GarageSession sign-in / sign-out lifecycle."""

import pytest

from conftest import FakeStore, make_record
from garage import AuthExpired, GarageSession, InvalidState, MaintenanceRecord, PersistenceFailure


@pytest.fixture
def fresh_store():
    return FakeStore([make_record("civic", "Civic"), make_record("gol", "Gol")])


class TestSignIn:
    """Tests for sign_in / resume."""

    def test_sign_in_loads_garage(self, fresh_store):
        session = GarageSession(fresh_store)
        session.sign_in("me@example.com", "secret")
        assert session.signed_in
        assert fresh_store.token == "token-for-me@example.com"
        assert [v.id for v in session.repository.list_vehicles()] == ["civic", "gol"]
        assert session.selection.active_id is None

    def test_resume_with_token(self, fresh_store):
        session = GarageSession(fresh_store)
        session.resume("saved-token")
        assert fresh_store.token == "saved-token"
        assert len(session.repository) == 2

    def test_register_passes_through(self, fresh_store):
        assert GarageSession(fresh_store).register("me@example.com", "secret") == (
            "User registered successfully!"
        )

    def test_operations_need_sign_in(self, fresh_store):
        session = GarageSession(fresh_store)
        with pytest.raises(InvalidState):
            session.update("civic", {"color": "red"})


class TestSignOut:
    """Tests for sign_out and expiry handling."""

    @pytest.fixture
    def session(self, fresh_store):
        session = GarageSession(fresh_store)
        session.sign_in("me@example.com", "secret")
        session.selection.select("civic")
        return session

    def test_sign_out_resets_everything(self, session, fresh_store):
        repository = session.repository
        session.sign_out()
        assert not session.signed_in
        assert fresh_store.token is None
        assert len(repository) == 0
        assert session.selection is None

    def test_auth_expired_ends_session(self, session, fresh_store):
        fresh_store.fail_with(AuthExpired("Token is not valid."))
        with pytest.raises(AuthExpired):
            session.update("civic", {"color": "red"})
        assert not session.signed_in
        assert fresh_store.token is None

    def test_auth_expired_on_load(self, session, fresh_store):
        fresh_store.token = None
        with pytest.raises(AuthExpired):
            session.load_all()
        assert not session.signed_in

    def test_other_failures_keep_session(self, session, fresh_store):
        fresh_store.fail_with(PersistenceFailure("Server error: 500", 500))
        with pytest.raises(PersistenceFailure):
            session.add_maintenance("civic", MaintenanceRecord.create("2024-01-15", "Oil change"))
        assert session.signed_in
        assert session.selection.active_id == "civic"

    def test_act_does_not_touch_store(self, session, fresh_store):
        calls = len(fresh_store.calls)
        assert session.act("civic", "power_on").ok
        assert len(fresh_store.calls) == calls
