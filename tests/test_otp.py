import threading
from datetime import timedelta

from clubhub.services.otp import CODE_MAX, CODE_MIN, InMemoryCodeStore, OtpLedger, generate_code


def test_generate_code_is_six_digits():
    for _ in range(200):
        code = generate_code()
        assert len(code) == 6
        assert CODE_MIN <= int(code) <= CODE_MAX


def test_code_is_single_use(clock):
    ledger = OtpLedger(ttl_seconds=300, clock=clock, code_factory=lambda: "123456")
    ledger.issue("a@x.edu")
    assert ledger.consume("a@x.edu", "123456") is True
    assert ledger.consume("a@x.edu", "123456") is False


def test_code_valid_until_exact_expiry(clock):
    ledger = OtpLedger(ttl_seconds=300, clock=clock, code_factory=lambda: "123456")
    ledger.issue("a@x.edu")
    clock.advance(seconds=300)
    assert ledger.consume("a@x.edu", "123456") is True


def test_expired_code_is_rejected_and_removed(clock):
    ledger = OtpLedger(ttl_seconds=300, clock=clock, code_factory=lambda: "123456")
    ledger.issue("a@x.edu")
    clock.advance(seconds=300, microseconds=1)
    assert ledger.consume("a@x.edu", "123456") is False
    assert len(ledger.store) == 0


def test_wrong_code_keeps_pending_code(clock):
    ledger = OtpLedger(ttl_seconds=300, clock=clock, code_factory=lambda: "123456")
    ledger.issue("a@x.edu")
    assert ledger.consume("a@x.edu", "654321") is False
    assert ledger.consume("a@x.edu", "123456") is True


def test_reissue_replaces_previous_code(clock):
    codes = iter(["111111", "222222"])
    ledger = OtpLedger(ttl_seconds=300, clock=clock, code_factory=lambda: next(codes))
    ledger.issue("a@x.edu")
    clock.advance(seconds=200)
    ledger.issue("a@x.edu")
    assert ledger.consume("a@x.edu", "111111") is False
    # The new code carries its own full lifetime
    clock.advance(seconds=250)
    assert ledger.consume("a@x.edu", "222222") is True


def test_email_is_case_insensitive(clock):
    ledger = OtpLedger(ttl_seconds=300, clock=clock, code_factory=lambda: "123456")
    ledger.issue("Student@X.edu")
    assert ledger.consume("student@x.edu", " 123456 ") is True


def test_unknown_email_and_discard(clock):
    ledger = OtpLedger(ttl_seconds=300, clock=clock, code_factory=lambda: "123456")
    assert ledger.consume("nobody@x.edu", "123456") is False
    ledger.issue("a@x.edu")
    ledger.discard("a@x.edu")
    assert ledger.consume("a@x.edu", "123456") is False


def test_codes_for_different_emails_are_independent(clock):
    codes = iter(["111111", "222222"])
    ledger = OtpLedger(ttl_seconds=300, clock=clock, code_factory=lambda: next(codes))
    ledger.issue("a@x.edu")
    ledger.issue("b@x.edu")
    assert ledger.consume("b@x.edu", "222222") is True
    assert ledger.consume("a@x.edu", "111111") is True


def test_store_keeps_no_state_after_issue_and_consume(clock):
    ledger = OtpLedger(ttl_seconds=300, clock=clock, code_factory=lambda: "123456")
    for i in range(1000):
        ledger.issue(f"user{i}@x.edu")
        assert ledger.consume(f"user{i}@x.edu", "123456") is True
    assert len(ledger.store) == 0
    assert ledger.store.lock_count == 0


def test_discard_and_failed_consume_release_locks(clock):
    ledger = OtpLedger(ttl_seconds=300, clock=clock, code_factory=lambda: "123456")
    ledger.issue("a@x.edu")
    ledger.consume("a@x.edu", "000000")
    ledger.consume("nobody@x.edu", "123456")
    ledger.discard("a@x.edu")
    assert len(ledger.store) == 0
    assert ledger.store.lock_count == 0


def test_abandoned_codes_are_swept_after_expiry(clock):
    ledger = OtpLedger(ttl_seconds=300, clock=clock, code_factory=lambda: "123456")
    for i in range(50):
        ledger.issue(f"gone{i}@x.edu")
    assert len(ledger.store) == 50
    clock.advance(seconds=301)
    ledger.issue("fresh@x.edu")
    assert len(ledger.store) == 1
    assert ledger.consume("fresh@x.edu", "123456") is True


def test_sweep_keeps_live_codes(clock):
    ledger = OtpLedger(ttl_seconds=300, clock=clock, code_factory=lambda: "123456")
    ledger.issue("old@x.edu")
    clock.advance(seconds=200)
    ledger.issue("new@x.edu")
    clock.advance(seconds=101)
    assert ledger.sweep() == 1
    assert ledger.consume("new@x.edu", "123456") is True


def test_key_lock_serializes_and_is_released_after_contention():
    store = InMemoryCodeStore()
    entered = threading.Event()
    release = threading.Event()
    order = []

    def holder():
        with store.locked("a"):
            entered.set()
            release.wait(5)
            order.append("holder")

    def waiter():
        entered.wait(5)
        with store.locked("a"):
            order.append("waiter")

    threads = [threading.Thread(target=holder), threading.Thread(target=waiter)]
    for t in threads:
        t.start()
    entered.wait(5)
    # Another key is never blocked by "a"
    with store.locked("b"):
        order.append("other")
    release.set()
    for t in threads:
        t.join(5)
    assert order == ["other", "holder", "waiter"]
    assert store.lock_count == 0


def test_default_ttl_is_five_minutes():
    assert OtpLedger().ttl == timedelta(minutes=5)
