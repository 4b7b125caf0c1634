import asyncio
import logging

from umkm_registry.core.config import settings
from umkm_registry.core.logging import ContextFilter, LogContext
from umkm_registry.db.storage import USERS_COLLECTION, SESSIONS_COLLECTION
from umkm_registry.models.user import RegisterData
from umkm_registry.services import auth_service, session_service, umkm_service, user_service
from utils.validation_utils import generate_uuid, is_valid_uuid

ADMIN_RW01_ID = "550e8400-e29b-41d4-a716-446655440001"
ADMIN_RW04_ID = "550e8400-e29b-41d4-a716-446655440004"


def siti(**overrides):
    data = {"username": "siti", "password": "rahasia1", "name": "Siti Aminah", "rw": "04"}
    data.update(overrides)
    return RegisterData(**data)


def login(run, username, password, rw=None):
    session = session_service.new_session()
    ok = run(auth_service.login(session, username, password, rw=rw))
    return ok, session


def test_register_then_login(storage, run):
    result = run(auth_service.register(siti()))
    assert result.success is True

    ok, session = login(run, "siti", "rahasia1")
    assert ok is True
    assert session.user.username == "siti"
    assert session.user.role == "user"
    assert session.user.rw == "04"
    assert is_valid_uuid(session.user.id)


def test_register_does_not_log_in_or_store_plaintext(storage, run):
    run(auth_service.register(siti()))

    assert run(session_service.list_sessions()) == []
    record = run(user_service.get_user_by_username("siti"))
    assert "password" not in record
    assert record["password_hash"] != "rahasia1"


def test_register_duplicate_username_fails(storage, run):
    assert run(auth_service.register(siti())).success is True

    second = run(auth_service.register(siti(password="lainlain", name="Siti Lain")))
    assert second.success is False
    assert len(run(user_service.list_users())) == 1


def test_register_reserved_admin_username_fails(storage, run):
    result = run(auth_service.register(siti(username="admin")))
    assert result.success is False


def test_register_normalizes_rw(storage, run):
    run(auth_service.register(siti(rw="4")))
    assert run(user_service.get_user_by_username("siti"))["rw"] == "04"


def test_login_wrong_password_fails(storage, run):
    run(auth_service.register(siti()))

    ok, session = login(run, "siti", "salah")
    assert ok is False
    assert session.user is None


def test_login_unknown_user_fails(storage, run):
    ok, _ = login(run, "nobody", "whatever")
    assert ok is False


def test_session_identity_has_no_password_material(storage, run):
    run(auth_service.register(siti()))
    _, session = login(run, "siti", "rahasia1")

    stored = run(storage.find_one(SESSIONS_COLLECTION, {"token": session.token}))
    assert "password_hash" not in stored["user"]
    assert "password" not in stored["user"]


def test_admin_login_with_default_password(storage, run):
    ok, session = login(run, "admin", "admin", rw="01")

    assert ok is True
    assert session.user.id == ADMIN_RW01_ID
    assert session.user.role == "admin"
    assert session.user.rw == "01"
    assert session.user.must_change_password is True


def test_admin_login_accepts_unpadded_rw(storage, run):
    ok, session = login(run, "admin", "admin", rw="4")
    assert ok is True
    assert session.user.id == ADMIN_RW04_ID


def test_admin_login_unknown_rw_fails(storage, run):
    ok, _ = login(run, "admin", "admin", rw="99")
    assert ok is False


def test_admin_login_default_password_needs_rw(storage, run):
    ok, _ = login(run, "admin", "admin")
    assert ok is False


def test_admin_default_password_rejected_after_change(storage, run):
    _, session = login(run, "admin", "admin", rw="01")
    result = run(auth_service.change_password(session, "admin", "kuat123"))
    assert result.success is True

    ok, _ = login(run, "admin", "admin", rw="01")
    assert ok is False

    ok, session = login(run, "admin", "kuat123", rw="01")
    assert ok is True
    assert session.user.must_change_password is False


def test_admin_override_is_per_jurisdiction(storage, run):
    _, session = login(run, "admin", "admin", rw="01")
    run(auth_service.change_password(session, "admin", "kuat123"))

    # RW 04 still uses the default
    ok, session = login(run, "admin", "admin", rw="04")
    assert ok is True
    assert session.user.id == ADMIN_RW04_ID


def test_admin_login_by_custom_password_without_rw(storage, run):
    _, session = login(run, "admin", "admin", rw="04")
    run(auth_service.change_password(session, "admin", "rw04-baru"))

    ok, session = login(run, "admin", "rw04-baru")
    assert ok is True
    assert session.user.id == ADMIN_RW04_ID


def test_change_password_requires_session(storage, run):
    result = run(auth_service.change_password(session_service.new_session(), "a", "bbbbbb"))
    assert result.success is False


def test_change_password_same_as_old_fails_for_every_role(storage, run):
    run(auth_service.register(siti()))
    _, user_session = login(run, "siti", "rahasia1")
    _, admin_session = login(run, "admin", "admin", rw="01")

    assert run(auth_service.change_password(user_session, "rahasia1", "rahasia1")).success is False
    assert run(auth_service.change_password(admin_session, "admin", "admin")).success is False


def test_change_password_too_short_fails(storage, run):
    run(auth_service.register(siti()))
    _, session = login(run, "siti", "rahasia1")

    result = run(auth_service.change_password(session, "rahasia1", "abc12"))
    assert result.success is False
    assert str(settings.MIN_PASSWORD_LENGTH) in result.message


def test_change_password_wrong_old_password_fails(storage, run):
    run(auth_service.register(siti()))
    _, session = login(run, "siti", "rahasia1")

    result = run(auth_service.change_password(session, "keliru", "baru12345"))
    assert result.success is False


def test_user_change_password_rewrites_registry(storage, run):
    run(auth_service.register(siti()))
    _, session = login(run, "siti", "rahasia1")

    result = run(auth_service.change_password(session, "rahasia1", "baru12345"))
    assert result.success is True
    assert session.user.last_password_change is not None

    assert login(run, "siti", "rahasia1")[0] is False
    assert login(run, "siti", "baru12345")[0] is True
    assert run(user_service.get_user_by_username("siti"))["last_password_change"]


def test_logout_clears_session(storage, run):
    run(auth_service.register(siti()))
    _, session = login(run, "siti", "rahasia1")
    token = session.token

    run(auth_service.logout(session))

    assert session.user is None
    assert run(session_service.open_session(token)) is None


def test_expired_session_is_dropped(storage, run):
    run(auth_service.register(siti()))
    _, session = login(run, "siti", "rahasia1")
    run(storage.update_one(SESSIONS_COLLECTION, {"token": session.token},
                           {"last_activity": "2020-01-01T00:00:00+00:00"}))

    assert run(session_service.open_session(session.token)) is None
    assert run(storage.find(SESSIONS_COLLECTION)) == []


def test_normalize_identifiers_migrates_legacy_users(storage, run):
    run(storage.insert_one(USERS_COLLECTION, {
        "id": "1700000000000",
        "username": "lama",
        "password": "lama123",
        "name": "Pengguna Lama",
        "role": "user",
        "rw": "01",
        "created_at": "2023-12-01T00:00:00+00:00",
    }))

    counts = run(auth_service.normalize_identifiers())
    assert counts["users"] == 1
    assert counts["passwords"] == 1

    record = run(user_service.get_user_by_username("lama"))
    assert is_valid_uuid(record["id"])
    assert record.get("password") is None

    ok, session = login(run, "lama", "lama123")
    assert ok is True
    assert session.user.id == record["id"]

    # Second run finds nothing left to do
    assert run(auth_service.normalize_identifiers()) == {"users": 0, "passwords": 0, "sessions": 0}


def test_normalize_identifiers_migrates_legacy_session(storage, run):
    run(storage.insert_one(USERS_COLLECTION, {
        "id": "legacy-7", "username": "lama", "password_hash": "x", "name": "Lama",
        "role": "user", "rw": "01",
    }))
    run(storage.insert_one(SESSIONS_COLLECTION, {
        "token": "tok",
        "user": {"id": "legacy-7", "username": "lama", "name": "Lama", "role": "user", "rw": "01"},
        "last_activity": "2099-01-01T00:00:00+00:00",
    }))

    counts = run(auth_service.normalize_identifiers())
    assert counts["sessions"] == 1

    record = run(user_service.get_user_by_username("lama"))
    session = run(storage.find_one(SESSIONS_COLLECTION, {"token": "tok"}))
    assert is_valid_uuid(record["id"])
    assert session["user"]["id"] == record["id"]


def test_concurrent_log_contexts_do_not_leak(storage, run, monkeypatch, caplog):
    caplog.set_level(logging.DEBUG, logger="umkm_registry")
    run(auth_service.register(siti()))
    factory = logging.getLogRecordFactory()

    find = storage.find

    async def slow_find(*args, **kwargs):
        await asyncio.sleep(0)
        return await find(*args, **kwargs)

    monkeypatch.setattr(storage, "find", slow_find)

    async def list_concurrently():
        await asyncio.gather(
            umkm_service.list_all(owner_id=generate_uuid()),
            umkm_service.list_all(owner_id=generate_uuid()),
        )

    run(list_concurrently())

    assert logging.getLogRecordFactory() is factory
    ok, session = login(run, "siti", "rahasia1")
    assert ok is True
    assert session.user.username == "siti"


def test_log_context_is_scoped_to_its_task(run):
    context_filter = ContextFilter()

    def stamped():
        record = logging.LogRecord("umkm_registry.test", logging.INFO, __file__, 1, "msg", None, None)
        context_filter.filter(record)
        return getattr(record, "user_id", None), getattr(record, "rw", None)

    async def worker(user_id):
        with LogContext(user_id=user_id):
            await asyncio.sleep(0)
            return stamped()

    async def both():
        with LogContext(rw="04"):
            return await asyncio.gather(worker("a"), worker("b"))

    assert run(both()) == [("a", "04"), ("b", "04")]
    assert stamped() == (None, None)
