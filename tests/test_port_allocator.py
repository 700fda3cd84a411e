"""Tests for port allocation."""

import logging
from unittest.mock import MagicMock, patch

import pytest

from dockyard.errors import NoPortsAvailableError, PortReassignmentRejectedError
from dockyard.services.port_allocator import (
    PortAllocation,
    PortAllocator,
    PortAssignment,
    PortChecker,
)


def checker_with_taken(*taken):
    checker = MagicMock(spec=PortChecker)
    checker.is_port_available.side_effect = lambda port: port not in taken
    return checker


class TestPortChecker:
    """Tests for PortChecker."""

    def test_offline_checker_never_probes(self):
        with patch("dockyard.services.port_allocator.socket.socket") as mock_socket:
            assert PortChecker(check_host=False).is_port_available(80)
        mock_socket.assert_not_called()

    def test_free_port(self):
        with patch("dockyard.services.port_allocator.socket.socket") as mock_socket:
            assert PortChecker().is_port_available(5432)
        sock = mock_socket.return_value.__enter__.return_value
        sock.bind.assert_called_once_with(("0.0.0.0", 5432))

    def test_bound_port(self):
        with patch("dockyard.services.port_allocator.socket.socket") as mock_socket:
            sock = mock_socket.return_value.__enter__.return_value
            sock.bind.side_effect = OSError("Address already in use")
            assert not PortChecker(host="127.0.0.1").is_port_available(5432)


class TestPortAllocation:
    """Tests for the immutable allocation record."""

    def test_extend_returns_new_record(self):
        first = PortAllocation((PortAssignment("postgresql", 5432, 5432),))
        second = first.extend([PortAssignment("redis", 6379, 6380)])

        assert len(first) == 1
        assert len(second) == 2
        assert second.committed() == frozenset({5432, 6380})
        assert second.ports_for("redis") == (6380,)
        assert [a.service for a in second.reassignments()] == ["redis"]

    def test_dict_round_trip(self):
        allocation = PortAllocation((PortAssignment("redis", 6379, 6381),))
        assert PortAllocation.from_dict(allocation.to_dict()) == allocation


class TestPortAllocator:
    """Tests for PortAllocator.allocate."""

    def test_requested_ports_kept_when_free(self):
        allocator = PortAllocator(checker=checker_with_taken())
        allocation = allocator.allocate("rabbitmq", [5672, 15672])
        assert allocation.ports_for("rabbitmq") == (5672, 15672)
        assert allocation.reassignments() == []

    def test_committed_port_skipped(self):
        """A second service asking for a committed port gets the next free one."""
        allocator = PortAllocator(checker=checker_with_taken())
        allocation = allocator.allocate("db1", [5432])
        allocation = allocator.allocate("db2", [5432], allocation)
        assert allocation.ports_for("db2") == (5433,)

    def test_host_taken_ports_skipped(self, caplog):
        allocator = PortAllocator(checker=checker_with_taken(5432, 5433, 5434))
        with caplog.at_level(logging.WARNING, logger="dockyard.services.port_allocator"):
            allocation = allocator.allocate("postgresql", [5432])
        assert allocation.ports_for("postgresql") == (5435,)
        assert "5432" in caplog.text and "5435" in caplog.text

    def test_input_allocation_unchanged(self):
        allocator = PortAllocator(checker=checker_with_taken())
        before = allocator.allocate("redis", [6379])
        after = allocator.allocate("valkey", [6379], before)
        assert before.ports_for("valkey") == ()
        assert after.ports_for("valkey") == (6380,)

    def test_ports_within_one_service_distinct(self):
        allocator = PortAllocator(checker=checker_with_taken())
        allocation = allocator.allocate("odd", [8080, 8080])
        assert allocation.ports_for("odd") == (8080, 8081)

    def test_window_exhausted(self):
        taken = range(5432, 5443)
        allocator = PortAllocator(checker=checker_with_taken(*taken))
        with pytest.raises(NoPortsAvailableError) as exc_info:
            allocator.allocate("postgresql", [5432])
        error = exc_info.value
        assert error.service_name == "postgresql"
        assert error.requested_port == 5432
        assert str(error) == 'No available ports found for "postgresql" (tried 5432 to 5442)'

    def test_last_port_in_window_used(self):
        allocator = PortAllocator(checker=checker_with_taken(*range(5432, 5442)))
        assert allocator.allocate("postgresql", [5432]).ports_for("postgresql") == (5442,)

    def test_candidates_above_max_port_skipped(self):
        checker = checker_with_taken(65534)
        allocator = PortAllocator(checker=checker)
        assert allocator.allocate("edge", [65534]).ports_for("edge") == (65535,)

        checker = checker_with_taken(65535)
        with pytest.raises(NoPortsAvailableError):
            PortAllocator(checker=checker).allocate("edge", [65535])
        probed = [c.args[0] for c in checker.is_port_available.call_args_list]
        assert probed == [65535]

    def test_confirm_accepts(self):
        confirm = MagicMock(return_value=True)
        allocator = PortAllocator(checker=checker_with_taken(6379), confirm=confirm)
        allocation = allocator.allocate("redis", [6379])
        confirm.assert_called_once_with("redis", 6379, 6380)
        assert allocation.ports_for("redis") == (6380,)

    def test_confirm_rejects(self):
        confirm = MagicMock(return_value=False)
        allocator = PortAllocator(checker=checker_with_taken(6379), confirm=confirm)
        with pytest.raises(PortReassignmentRejectedError) as exc_info:
            allocator.allocate("redis", [6379])
        assert exc_info.value.service_name == "redis"
        assert exc_info.value.requested_port == 6379

    def test_confirm_not_asked_when_port_free(self):
        confirm = MagicMock()
        PortAllocator(checker=checker_with_taken(), confirm=confirm).allocate("redis", [6379])
        confirm.assert_not_called()
