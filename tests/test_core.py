import threading
import time
from datetime import datetime, timedelta, timezone

import pytest

from mentorship_engine.core.intervals import as_utc, intervals_overlap, overlap_minutes, session_end
from mentorship_engine.core.locks import KeyedLock, acquire_advisory_lock, get_dialect_name

T0 = datetime(2025, 1, 10, 10, 0, tzinfo=timezone.utc)


class TestIntervals:
    @pytest.mark.parametrize("b_start,b_minutes,expected", [
        (T0 + timedelta(minutes=30), 30, True),    # starts inside
        (T0 - timedelta(minutes=30), 60, True),    # ends inside
        (T0 - timedelta(minutes=30), 120, True),   # encloses
        (T0 + timedelta(minutes=10), 10, True),    # enclosed
        (T0 + timedelta(minutes=60), 30, False),   # abuts the end
        (T0 - timedelta(minutes=30), 30, False),   # abuts the start
        (T0 + timedelta(hours=3), 30, False),
    ])
    def test_half_open_overlap(self, b_start, b_minutes, expected):
        a_end = session_end(T0, 60)
        b_end = session_end(b_start, b_minutes)

        assert intervals_overlap(T0, a_end, b_start, b_end) is expected
        assert intervals_overlap(b_start, b_end, T0, a_end) is expected

    def test_naive_values_are_utc(self):
        naive = datetime(2025, 1, 10, 10, 0)

        assert as_utc(naive) == T0
        assert intervals_overlap(naive, naive + timedelta(hours=1), T0 + timedelta(minutes=59), T0 + timedelta(hours=2))

    def test_as_utc_converts_offsets(self):
        tokyo = timezone(timedelta(hours=9))

        assert as_utc(datetime(2025, 1, 10, 19, 0, tzinfo=tokyo)) == T0

    def test_overlap_minutes(self):
        assert overlap_minutes(T0, session_end(T0, 60), T0 + timedelta(minutes=45), T0 + timedelta(hours=2)) == 15
        assert overlap_minutes(T0, session_end(T0, 60), session_end(T0, 60), T0 + timedelta(hours=2)) == 0


class TestKeyedLock:
    def test_same_key_is_exclusive(self):
        locks = KeyedLock()
        inside = []
        peak = []

        def worker():
            with locks.hold("pair:1:2"):
                inside.append(1)
                peak.append(len(inside))
                time.sleep(0.01)
                inside.pop()

        threads = [threading.Thread(target=worker) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert max(peak) == 1
        assert locks.active_keys() == []

    def test_different_keys_do_not_block(self):
        locks = KeyedLock()
        entered = threading.Event()

        def other():
            with locks.hold("b"):
                entered.set()

        with locks.hold("a"):
            t = threading.Thread(target=other)
            t.start()
            assert entered.wait(timeout=5)
            t.join()
            assert locks.active_keys() == ["a"]

    def test_released_on_error(self):
        locks = KeyedLock()

        with pytest.raises(ValueError):
            with locks.hold("k"):
                raise ValueError("boom")

        assert locks.active_keys() == []
        with locks.hold("k"):
            pass


class TestAdvisoryLock:
    def test_skipped_outside_postgres(self, db):
        assert get_dialect_name(db) == "sqlite"
        assert acquire_advisory_lock(db, "mentorship-pair:1:2") is False


class TestConfig:
    def test_defaults_and_env_override(self, monkeypatch):
        from mentorship_engine.config import Settings

        monkeypatch.delenv("NOTIFICATION_ASYNC", raising=False)
        assert Settings().NOTIFICATION_ASYNC is True

        monkeypatch.setenv("SESSION_MAX_DURATION_MINUTES", "120")
        monkeypatch.setenv("NOTIFICATION_ASYNC", "false")
        settings = Settings()

        assert settings.SESSION_MIN_DURATION_MINUTES == 15
        assert settings.SESSION_MAX_DURATION_MINUTES == 120
        assert settings.NOTIFICATION_ASYNC is False
        assert settings.ALLOWED_MATCH_ATTRIBUTES == ["male", "female"]

    def test_configure_logging_sets_root_level(self):
        import logging

        from mentorship_engine.config import configure_logging

        root = logging.getLogger()
        previous_level, previous_handlers = root.level, root.handlers[:]
        try:
            configure_logging("warning")
            assert root.level == logging.WARNING
        finally:
            root.handlers[:] = previous_handlers
            root.setLevel(previous_level)

    def test_database_url_prefers_explicit_setting(self):
        from mentorship_engine.database import get_database_url, get_engine

        assert get_database_url() == "sqlite://"
        assert get_engine("sqlite://").dialect.name == "sqlite"
