"""Unit tests for fileguard.sandbox.manager module."""

import threading

import pytest

from fileguard.config.schema import SandboxConfig
from fileguard.exceptions import ResourceExhaustedError
from fileguard.sandbox import AdmissionGate, SecureFileManager


class BlockingChunks:
    """Chunk producer that holds a stream write open until released."""

    def __init__(self):
        self.started = threading.Event()
        self.release = threading.Event()

    def __iter__(self):
        yield "first "
        self.started.set()
        self.release.wait(timeout=10)
        yield "second"


def _start_blocked_write(manager, path, chunks):
    errors = []

    def run():
        try:
            manager.stream_write(path, chunks)
        except Exception as e:  # surfaced through the errors list
            errors.append(e)

    thread = threading.Thread(target=run)
    thread.start()
    assert chunks.started.wait(timeout=10), "stream write never started"
    return thread, errors


@pytest.mark.unit
@pytest.mark.sandbox
class TestSecureFileManager:
    def test_stats_reflect_configuration(self, workspace):
        manager = SecureFileManager(
            SandboxConfig(
                root_directory=workspace, max_file_size=1024, max_concurrent_operations=3
            )
        )

        stats = manager.stats()

        assert stats.active_operations == 0
        assert stats.root_directory == str(workspace)
        assert stats.max_file_size == 1024
        assert stats.max_concurrent_operations == 3

    def test_list_backups_reports_snapshots(self, file_manager, workspace):
        (workspace / "a.py").write_text("x")
        (workspace / "b.py").write_text("y")
        file_manager.delete("a.py")
        file_manager.delete("b.py")

        assert len(file_manager.list_backups()) == 2
        backups = file_manager.list_backups("a.py")
        assert [p.read_text() for p in backups] == ["x"]

    def test_injected_gate_is_shared(self, sandbox_config):
        gate = AdmissionGate(5)
        first = SecureFileManager(sandbox_config, gate=gate)
        second = SecureFileManager(sandbox_config, gate=gate)

        assert first.gate is second.gate
        assert first.stats().max_concurrent_operations == 5


@pytest.mark.unit
@pytest.mark.sandbox
class TestConcurrencyLimit:
    """limit + 1 simultaneous gated operations: one is refused immediately."""

    def test_extra_operation_is_refused_then_slot_is_reusable(self, workspace):
        manager = SecureFileManager(
            SandboxConfig(root_directory=workspace, max_concurrent_operations=1)
        )
        (workspace / "other.txt").write_text("x")
        chunks = BlockingChunks()

        thread, errors = _start_blocked_write(manager, "slow.txt", chunks)
        try:
            assert manager.stats().active_operations == 1
            with pytest.raises(ResourceExhaustedError):
                manager.read("other.txt")
        finally:
            chunks.release.set()
            thread.join(timeout=10)

        assert errors == []
        assert (workspace / "slow.txt").read_text() == "first second"
        assert manager.stats().active_operations == 0
        assert manager.read("other.txt") == "x"

    def test_walker_operations_are_not_gated(self, workspace):
        manager = SecureFileManager(
            SandboxConfig(root_directory=workspace, max_concurrent_operations=1)
        )
        (workspace / "a.py").write_text("needle\n")
        chunks = BlockingChunks()

        thread, errors = _start_blocked_write(manager, "slow.txt", chunks)
        try:
            assert [f.name for f in manager.list_files()] == ["a.py"]
            assert len(manager.search("needle").results) == 1
        finally:
            chunks.release.set()
            thread.join(timeout=10)

        assert errors == []

    def test_shared_gate_limits_across_managers(self, workspace):
        gate = AdmissionGate(1)
        config = SandboxConfig(root_directory=workspace)
        writer = SecureFileManager(config, gate=gate)
        reader = SecureFileManager(config, gate=gate)
        (workspace / "a.py").write_text("x")
        chunks = BlockingChunks()

        thread, errors = _start_blocked_write(writer, "slow.txt", chunks)
        try:
            with pytest.raises(ResourceExhaustedError):
                reader.read("a.py")
        finally:
            chunks.release.set()
            thread.join(timeout=10)

        assert errors == []
        assert reader.read("a.py") == "x"
