"""Port allocator - conflict-free host ports for the services of one configuration."""

import logging
import socket
from dataclasses import dataclass
from typing import Callable, FrozenSet, Iterable, Iterator, List, Optional, Sequence, Tuple

from dockyard.constants import MAX_PORT, PORT_PROBE_WINDOW
from dockyard.errors import NoPortsAvailableError, PortReassignmentRejectedError

logger = logging.getLogger(__name__)

# (service, requested, substitute) -> accept?
ConfirmReassignment = Callable[[str, int, int], bool]


class PortChecker:
    """Checks whether a host port can be bound.

    With ``check_host=False`` every port counts as free, which keeps generation
    independent of the machine it runs on.
    """

    def __init__(self, check_host: bool = True, host: str = "0.0.0.0"):
        self.check_host = check_host
        self.host = host

    def is_port_available(self, port: int) -> bool:
        if not self.check_host:
            return True
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            try:
                sock.bind((self.host, port))
            except OSError:
                logger.debug(f"Port {port} is bound on the host")
                return False
        return True


@dataclass(frozen=True)
class PortAssignment:
    service: str
    requested: int
    assigned: int

    @property
    def reassigned(self) -> bool:
        return self.requested != self.assigned


@dataclass(frozen=True)
class PortAllocation:
    """Immutable record of the ports handed out during one generation run, in allocation order."""

    assignments: Tuple[PortAssignment, ...] = ()

    def __iter__(self) -> Iterator[PortAssignment]:
        return iter(self.assignments)

    def __len__(self) -> int:
        return len(self.assignments)

    def committed(self) -> FrozenSet[int]:
        return frozenset(a.assigned for a in self.assignments)

    def ports_for(self, service: str) -> Tuple[int, ...]:
        return tuple(a.assigned for a in self.assignments if a.service == service)

    def reassignments(self) -> List[PortAssignment]:
        return [a for a in self.assignments if a.reassigned]

    def extend(self, assignments: Iterable[PortAssignment]) -> "PortAllocation":
        return PortAllocation(self.assignments + tuple(assignments))

    def to_dict(self) -> List[dict]:
        return [
            {"service": a.service, "requested": a.requested, "assigned": a.assigned}
            for a in self.assignments
        ]

    @classmethod
    def from_dict(cls, data: Iterable[dict]) -> "PortAllocation":
        return cls(tuple(PortAssignment(d["service"], int(d["requested"]), int(d["assigned"])) for d in data))


class PortAllocator:
    """Allocates requested host ports, probing a fixed window above a taken port.

    Allocation is additive: ``allocate`` returns a new PortAllocation holding
    the previous assignments plus the ones for ``service``; a port already in
    the allocation is never handed out again.
    """

    def __init__(
        self,
        checker: Optional[PortChecker] = None,
        window: int = PORT_PROBE_WINDOW,
        confirm: Optional[ConfirmReassignment] = None,
    ):
        self.checker = checker or PortChecker()
        self.window = window
        self.confirm = confirm

    def allocate(
        self,
        service: str,
        requested_ports: Sequence[int],
        allocation: Optional[PortAllocation] = None,
    ) -> PortAllocation:
        """Allocate host ports for one service.

        Args:
            service: Service name
            requested_ports: Requested host ports, in definition order
            allocation: Ports allocated so far in this run

        Returns:
            The extended allocation

        Raises:
            NoPortsAvailableError: a requested port and its whole window are taken
            PortReassignmentRejectedError: the confirm callback refused a substitute
        """
        allocation = allocation or PortAllocation()
        committed = set(allocation.committed())
        assignments = []

        for requested in requested_ports:
            assigned = self._find_free(service, requested, committed)
            if assigned != requested:
                if self.confirm is not None:
                    if not self.confirm(service, requested, assigned):
                        raise PortReassignmentRejectedError(service, requested)
                else:
                    logger.warning(f"Port {requested} for {service} is taken, using {assigned}")
            committed.add(assigned)
            assignments.append(PortAssignment(service, requested, assigned))
            logger.debug(f"Allocated port {assigned} to {service} (requested {requested})")

        return allocation.extend(assignments)

    def _find_free(self, service: str, requested: int, committed: set) -> int:
        last = requested + self.window
        for candidate in range(requested, last + 1):
            if candidate > MAX_PORT or candidate in committed:
                continue
            if self.checker.is_port_available(candidate):
                return candidate
        raise NoPortsAvailableError(service, requested, last)
