"""Unit tests for fileguard.sandbox.gate module."""

import threading

import pytest

from fileguard.exceptions import ResourceExhaustedError
from fileguard.sandbox.gate import AdmissionGate


@pytest.mark.unit
@pytest.mark.sandbox
class TestAdmissionGate:
    """Fail-fast admission with a fixed number of slots."""

    def test_invalid_limit_raises(self):
        with pytest.raises(ValueError):
            AdmissionGate(0)

    def test_acquire_and_release_update_active_count(self):
        gate = AdmissionGate(2)

        slot = gate.acquire()
        assert gate.active == 1

        slot.release()
        assert gate.active == 0

    def test_full_gate_rejects_immediately(self):
        gate = AdmissionGate(1)

        with gate.acquire():
            with pytest.raises(ResourceExhaustedError) as exc_info:
                gate.acquire()

        assert str(exc_info.value) == "Too many concurrent operations. Please try again later."
        assert gate.active == 0

    def test_rejection_does_not_consume_a_slot(self):
        gate = AdmissionGate(1)
        slot = gate.acquire()

        for _ in range(3):
            with pytest.raises(ResourceExhaustedError):
                gate.acquire()

        assert gate.active == 1
        slot.release()
        assert gate.active == 0

    def test_slot_is_reusable_after_release(self):
        gate = AdmissionGate(1)

        with gate.acquire():
            pass
        with gate.acquire():
            assert gate.active == 1

    def test_release_is_idempotent(self):
        gate = AdmissionGate(2)
        first = gate.acquire()
        gate.acquire()

        first.release()
        first.release()

        assert gate.active == 1

    def test_slot_released_when_block_raises(self):
        gate = AdmissionGate(1)

        with pytest.raises(RuntimeError):
            with gate.acquire():
                raise RuntimeError("boom")

        assert gate.active == 0

    def test_concurrent_acquires_never_exceed_limit(self):
        gate = AdmissionGate(3)
        start = threading.Barrier(8)
        admitted = []
        rejected = []
        lock = threading.Lock()
        slots = []

        def worker():
            start.wait()
            try:
                slot = gate.acquire()
            except ResourceExhaustedError:
                with lock:
                    rejected.append(1)
                return
            with lock:
                admitted.append(1)
                slots.append(slot)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(admitted) == 3
        assert len(rejected) == 5
        assert gate.active == 3

        for slot in slots:
            slot.release()
        assert gate.active == 0
