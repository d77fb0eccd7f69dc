"""Tests for refresh-token rotation."""

import threading
from datetime import timedelta
from types import SimpleNamespace

import pytest

from models.db_storage import DBStorage
from models.refresh_token import RefreshToken
from services.auth import AuthService, GENERIC_AUTH_FAILURE
from services.tokens import TokenService
from tests.helpers import ALICE_PASSWORD
from utils.exceptions import InternalError, UnauthorizedError
from utils.timeutils import utcnow


@pytest.fixture
def session(auth_service, alice, sleeps):
    result = auth_service.login("alice", ALICE_PASSWORD)
    sleeps.clear()
    return result


@pytest.fixture
def file_storage(tmp_path):
    """File-backed store so each thread gets its own connection."""
    store = DBStorage(f"sqlite:///{tmp_path / 'auth.db'}")
    store.reload()
    yield store
    store.close()
    store.engine.dispose()


class TestRotation:
    def test_refresh_returns_a_new_pair(self, auth_service, tokens, storage, alice, session):
        result = auth_service.refresh(session.refresh_token)

        assert result.user_id == alice.id
        assert result.refresh_token != session.refresh_token
        assert result.access_token != session.access_token
        assert tokens.subject_of(result.access_token) == alice.id
        assert storage.find_token_by_secret(result.refresh_token).is_active

    def test_presented_token_is_revoked_not_deleted(self, auth_service, storage, session):
        auth_service.refresh(session.refresh_token)

        old = storage.find_token_by_secret(session.refresh_token)
        assert old is not None
        assert old.revoked_at is not None
        assert not old.is_active
        assert storage.count(RefreshToken) == 2

    def test_token_redeems_exactly_once(self, auth_service, storage, session, sleeps):
        auth_service.refresh(session.refresh_token)

        with pytest.raises(UnauthorizedError) as exc_info:
            auth_service.refresh(session.refresh_token)

        assert str(exc_info.value) == GENERIC_AUTH_FAILURE
        assert len(sleeps) == 1
        assert not storage.find_token_by_secret(session.refresh_token).is_active
        assert storage.count(RefreshToken) == 2

    def test_rotated_token_can_be_rotated_again(self, auth_service, session):
        second = auth_service.refresh(session.refresh_token)
        third = auth_service.refresh(second.refresh_token)

        assert len({session.refresh_token, second.refresh_token, third.refresh_token}) == 3

    def test_refresh_updates_last_login(self, auth_service, storage, alice, session):
        before = storage.find_user_by_id(alice.id).last_login_at

        auth_service.refresh(session.refresh_token)

        assert storage.find_user_by_id(alice.id).last_login_at >= before


class TestRefreshFailure:
    def test_unknown_token(self, auth_service, alice, sleeps):
        with pytest.raises(UnauthorizedError) as exc_info:
            auth_service.refresh("bm90LWEtcmVhbC10b2tlbg==")

        assert str(exc_info.value) == GENERIC_AUTH_FAILURE
        assert len(sleeps) == 1 and 0.1 <= sleeps[0] <= 0.3

    @pytest.mark.parametrize("value", ["", "   ", None])
    def test_blank_token_fails_fast(self, auth_service, sleeps, value):
        with pytest.raises(UnauthorizedError):
            auth_service.refresh(value)

        assert sleeps == []

    def test_expired_token(self, auth_service, storage, alice, sleeps):
        stale = RefreshToken(token="expired-secret", user_id=alice.id, expires_at=utcnow() - timedelta(seconds=1))
        with storage.transaction():
            storage.create_token(stale)

        with pytest.raises(UnauthorizedError):
            auth_service.refresh("expired-secret")

        assert len(sleeps) == 1

    def test_inactive_owner(self, auth_service, storage, session, sleeps, deactivate, alice):
        deactivate(alice)

        with pytest.raises(UnauthorizedError) as exc_info:
            auth_service.refresh(session.refresh_token)

        assert str(exc_info.value) == GENERIC_AUTH_FAILURE
        assert len(sleeps) == 1
        assert storage.find_token_by_secret(session.refresh_token).revoked_at is None

    def test_delay_runs_with_no_transaction_open(self, storage, tokens, passwords, alice, deactivate):
        open_during_delay = []
        service = AuthService(
            storage, tokens, passwords,
            sleep=lambda seconds: open_during_delay.append(storage.session_in_transaction),
        )
        first = service.login("alice", ALICE_PASSWORD)
        service.refresh(first.refresh_token)
        second = service.login("alice", ALICE_PASSWORD)

        for secret in ("unknown-secret", first.refresh_token):
            with pytest.raises(UnauthorizedError):
                service.refresh(secret)
        deactivate(alice)
        with pytest.raises(UnauthorizedError):
            service.refresh(second.refresh_token)

        assert open_during_delay == [False, False, False]

    def test_revoked_and_unknown_tokens_look_the_same(self, auth_service, session):
        auth_service.refresh(session.refresh_token)
        errors = []
        for secret in (session.refresh_token, "unknown-secret"):
            with pytest.raises(UnauthorizedError) as exc_info:
                auth_service.refresh(secret)
            errors.append(str(exc_info.value))

        assert errors[0] == errors[1]


class TestConcurrentRedemption:
    def test_losing_a_race_fails_without_issuing(self, auth_service, storage, session, sleeps, monkeypatch):
        """Second caller read the token as active before the first caller revoked it."""
        stored = storage.find_token_by_secret(session.refresh_token)
        snapshot = SimpleNamespace(
            id=stored.id,
            user_id=stored.user_id,
            token=stored.token,
            is_active_at=lambda now: True,
        )
        auth_service.refresh(session.refresh_token)
        monkeypatch.setattr(storage, "find_token_by_secret", lambda secret: snapshot)

        with pytest.raises(UnauthorizedError):
            auth_service.refresh(session.refresh_token)

        assert len(sleeps) == 1
        assert not storage.in_transaction
        assert storage.count(RefreshToken) == 2

    def test_parallel_redemptions_have_one_winner(self, file_storage, config, passwords):
        service = AuthService(file_storage, TokenService(config, file_storage), passwords, sleep=lambda s: None)
        user = service.register("alice", "alice@x.com", ALICE_PASSWORD)
        secret = service.login("alice", ALICE_PASSWORD).refresh_token
        file_storage.close()

        callers = 8
        barrier = threading.Barrier(callers)
        outcomes = []

        def redeem():
            try:
                barrier.wait()
                service.refresh(secret)
                outcomes.append("ok")
            except UnauthorizedError:
                outcomes.append("unauthorized")
            except Exception as exc:
                outcomes.append(repr(exc))
            finally:
                file_storage.close()

        threads = [threading.Thread(target=redeem) for _ in range(callers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert sorted(outcomes) == ["ok"] + ["unauthorized"] * (callers - 1)
        assert len(file_storage.list_active_tokens(user.id, utcnow())) == 1
        assert file_storage.count(RefreshToken) == 2


class TestRefreshTransaction:
    def test_failure_restores_the_presented_token(self, auth_service, storage, session, monkeypatch):
        def fail(user_id):
            raise InternalError("signing backend unavailable")

        monkeypatch.setattr(auth_service.tokens, "mint_refresh", fail)

        with pytest.raises(InternalError):
            auth_service.refresh(session.refresh_token)

        assert not storage.in_transaction
        assert storage.find_token_by_secret(session.refresh_token).is_active
        assert storage.count(RefreshToken) == 1


class TestSessionScenario:
    def test_register_login_refresh_revoke_all(self, auth_service, storage):
        user = auth_service.register("alice", "alice@x.com", "Secret123!")

        login = auth_service.login("alice", "Secret123!")
        assert login.access_token and login.refresh_token

        rotated = auth_service.refresh(login.refresh_token)
        with pytest.raises(UnauthorizedError):
            auth_service.refresh(login.refresh_token)

        other_device = auth_service.login("alice@x.com", "Secret123!")
        assert auth_service.revoke_all(user.id) == 2

        for secret in (rotated.refresh_token, other_device.refresh_token):
            with pytest.raises(UnauthorizedError):
                auth_service.refresh(secret)
        assert storage.list_active_tokens(user.id, utcnow()) == []
