"""
PIN security tests: attempt tracker and PIN helpers

Run with: pytest test_security.py -v
"""
import threading
from datetime import timedelta

import pytest

from utils.security import (
    WEAK_PINS,
    AttemptRecord,
    InMemoryAttemptStore,
    PinAttemptTracker,
    PinFormatError,
    hash_pin,
    validate_pin,
    verify_pin,
)


def fail(tracker, identity, times):
    for _ in range(times):
        tracker.record_failed_attempt(identity)


class TestCheckAttempts:
    """Allow/deny decisions"""

    def test_unknown_identity_is_allowed(self, tracker):
        check = tracker.check_attempts('S1')
        assert check.allowed is True
        assert check.remaining_attempts == 5
        assert check.locked_until is None

    def test_empty_identity_is_allowed(self, tracker):
        fail(tracker, '', 10)
        assert tracker.check_attempts('').allowed is True
        assert len(tracker.store) == 0

    def test_remaining_attempts_count_down(self, tracker, clock):
        fail(tracker, 'S1', 3)
        assert tracker.check_attempts('S1').remaining_attempts == 2

    def test_five_failures_lock_out(self, tracker, clock):
        for _ in range(5):
            clock.advance(seconds=20)
            tracker.record_failed_attempt('S1')
        last_attempt = clock.now

        check = tracker.check_attempts('S1')
        assert check.allowed is False
        assert check.remaining_attempts == 0
        assert check.locked_until == last_attempt + timedelta(minutes=15)

    def test_lockout_holds_until_locked_until(self, tracker, clock):
        fail(tracker, 'S1', 5)
        locked_until = tracker.check_attempts('S1').locked_until

        # Past the attempt window but inside the lockout.
        clock.advance(minutes=6)
        assert tracker.check_attempts('S1').allowed is False

        clock.now = locked_until - timedelta(seconds=1)
        assert tracker.check_attempts('S1').allowed is False

    def test_lockout_expiry_restores_and_removes_record(self, tracker, clock):
        fail(tracker, 'S1', 5)
        clock.advance(minutes=15, seconds=1)

        check = tracker.check_attempts('S1')
        assert check.allowed is True
        assert check.remaining_attempts == 5
        assert tracker.store.get('S1') is None

    def test_window_expiry_clears_partial_record(self, tracker, clock):
        fail(tracker, 'S1', 2)
        clock.advance(minutes=5, seconds=1)

        check = tracker.check_attempts('S1')
        assert check.remaining_attempts == 5
        assert tracker.store.get('S1') is None

    def test_window_boundary_is_inclusive(self, tracker, clock):
        fail(tracker, 'S1', 2)
        clock.advance(minutes=5)
        assert tracker.check_attempts('S1').remaining_attempts == 3

    def test_identities_are_independent(self, tracker):
        fail(tracker, 'S1', 5)
        assert tracker.check_attempts('S1').allowed is False
        assert tracker.check_attempts('S2').remaining_attempts == 5


class TestRecordFailedAttempt:
    """Window accumulation"""

    def test_failures_inside_window_accumulate(self, tracker, clock):
        tracker.record_failed_attempt('S1')
        clock.advance(minutes=4)
        tracker.record_failed_attempt('S1')
        record = tracker.store.get('S1')
        assert record.count == 2
        assert record.last_attempt_at == clock.now

    def test_failure_after_window_restarts_count(self, tracker, clock):
        fail(tracker, 'S1', 3)
        clock.advance(minutes=5, seconds=1)
        tracker.record_failed_attempt('S1')
        assert tracker.store.get('S1').count == 1
        assert tracker.check_attempts('S1').remaining_attempts == 4

    def test_sliding_window_tracks_last_failure(self, tracker, clock):
        # Each failure is 4 minutes after the previous one, so none expire.
        for _ in range(5):
            tracker.record_failed_attempt('S1')
            clock.advance(minutes=4)
        assert tracker.store.get('S1').count == 5


class TestResetAndSweep:
    """Reset and periodic cleanup"""

    def test_reset_restores_full_attempts(self, tracker):
        fail(tracker, 'S1', 5)
        tracker.reset_attempts('S1')
        check = tracker.check_attempts('S1')
        assert check.allowed is True
        assert check.remaining_attempts == 5

    def test_reset_unknown_identity_is_noop(self, tracker):
        tracker.reset_attempts('nobody')
        assert len(tracker.store) == 0

    def test_sweep_removes_only_stale_records(self, tracker, clock):
        tracker.record_failed_attempt('old')
        clock.advance(minutes=10)
        tracker.record_failed_attempt('recent')
        clock.advance(minutes=6)

        removed = tracker.sweep()

        assert removed == 1
        assert tracker.store.get('old') is None
        assert tracker.store.get('recent').count == 1

    def test_cleanup_is_sweep(self, tracker, clock):
        tracker.record_failed_attempt('old')
        clock.advance(minutes=16)
        assert tracker.cleanup() == 1
        assert len(tracker.store) == 0


class TestTrackerConfiguration:

    def test_custom_limits(self, clock):
        tracker = PinAttemptTracker(
            max_attempts=3,
            lockout_duration=timedelta(minutes=1),
            attempt_window=timedelta(seconds=30),
            clock=clock,
        )
        fail(tracker, 'S1', 3)
        check = tracker.check_attempts('S1')
        assert check.allowed is False
        assert check.locked_until == clock.now + timedelta(minutes=1)

    def test_custom_store_is_used(self, clock):
        class RecordingStore(InMemoryAttemptStore):
            def __init__(self):
                super().__init__()
                self.ttls = []

            def set(self, identity, record, ttl=None):
                self.ttls.append(ttl)
                super().set(identity, record, ttl)

        store = RecordingStore()
        tracker = PinAttemptTracker(store, clock=clock)
        tracker.record_failed_attempt('S1')
        assert store.ttls == [timedelta(minutes=15)]
        assert isinstance(store.get('S1'), AttemptRecord)


class TestConcurrency:

    def test_concurrent_failures_are_all_counted(self, clock):
        tracker = PinAttemptTracker(max_attempts=10_000, clock=clock)
        threads = [
            threading.Thread(target=fail, args=(tracker, 'S1', 250))
            for _ in range(8)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert tracker.store.get('S1').count == 2000


class TestScenario:

    def test_lockout_rejects_even_correct_pin(self, tracker, clock):
        for _ in range(4):
            clock.advance(seconds=30)
            tracker.record_failed_attempt('S1')
        assert tracker.check_attempts('S1').remaining_attempts == 1

        tracker.record_failed_attempt('S1')
        check = tracker.check_attempts('S1')
        assert check.allowed is False
        assert check.locked_until == clock.now + timedelta(minutes=15)


class TestPinHelpers:
    """hash_pin / verify_pin / validate_pin"""

    def test_hash_and_verify(self):
        pin_hash = hash_pin('7392')
        assert pin_hash.startswith('$2b$12$')
        assert verify_pin('7392', pin_hash) is True
        assert verify_pin('7393', pin_hash) is False

    @pytest.mark.parametrize('pin', ['', '123', '12345', 'abcd', '12a4', ' 123'])
    def test_hash_rejects_bad_format(self, pin):
        with pytest.raises(PinFormatError, match='PIN must be exactly 4 digits'):
            hash_pin(pin)

    def test_verify_fails_closed(self):
        pin_hash = '$2b$04$abcdefghijklmnopqrstuuJqGQ8rDHeJ9h1X5fSLq1e7sdOeRl/vK'
        assert verify_pin('', pin_hash) is False
        assert verify_pin('12ab', pin_hash) is False
        assert verify_pin('7392', '') is False
        assert verify_pin('7392', 'not-a-bcrypt-hash') is False
        assert verify_pin(None, None) is False

    def test_validate_weak_pins(self):
        assert len(WEAK_PINS) == 14
        for pin in WEAK_PINS:
            result = validate_pin(pin)
            assert result.is_valid is False
            assert 'too weak' in result.error

    def test_validate_examples(self):
        assert validate_pin('1234').is_valid is False
        assert validate_pin('0000').is_valid is False
        assert validate_pin('7392').is_valid is True
        assert validate_pin('7392').error is None

    def test_validate_messages(self):
        assert validate_pin('').error == 'PIN is required'
        assert validate_pin('12345').error == 'PIN must be exactly 4 digits'

    @pytest.mark.parametrize('pin', ['١١١١', '١٢٣٤', '７３９２'])
    def test_only_ascii_digits(self, pin, fast_hashing):
        """Arabic-Indic and full-width digits are not PIN digits"""
        assert validate_pin(pin).error == 'PIN must be exactly 4 digits'
        with pytest.raises(PinFormatError):
            hash_pin(pin)
        assert verify_pin(pin, hash_pin('7392')) is False
