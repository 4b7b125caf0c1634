from utils.time_utils import is_session_expired, parse_iso, utc_now_iso
from utils.validation_utils import generate_uuid, is_valid_uuid, normalize_rw, sanitize_input


def test_is_valid_uuid():
    assert is_valid_uuid("550e8400-e29b-41d4-a716-446655440001")
    assert is_valid_uuid("550E8400-E29B-41D4-A716-446655440001")
    assert is_valid_uuid(generate_uuid())

    assert not is_valid_uuid(None)
    assert not is_valid_uuid("")
    assert not is_valid_uuid("not-a-uuid")
    assert not is_valid_uuid("1700000000000")
    assert not is_valid_uuid("550e8400e29b41d4a716446655440001")


def test_normalize_rw():
    assert normalize_rw("1") == "01"
    assert normalize_rw(" 04 ") == "04"
    assert normalize_rw("12") == "12"
    assert normalize_rw("RW-A") == "RW-A"
    assert normalize_rw("  ") is None
    assert normalize_rw(None) is None


def test_sanitize_input():
    assert sanitize_input("  Toko   <b>Bunga</b> ") == "Toko bBunga/b"
    assert sanitize_input("") == ""
    assert sanitize_input("abcdef", max_length=3) == "abc"


def test_timestamps_and_expiry():
    now = utc_now_iso()
    assert parse_iso(now) is not None
    assert parse_iso("2024-01-01T00:00:00Z").year == 2024
    assert parse_iso("yesterday") is None

    assert not is_session_expired(now, timeout_minutes=5)
    assert is_session_expired("2020-01-01T00:00:00+00:00", timeout_minutes=5)
    assert is_session_expired(None)
