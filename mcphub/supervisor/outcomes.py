import threading
from enum import Enum
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Union

from mcphub.registry import ServerDescriptor


@dataclass(frozen=True)
class LaunchPlan:
    """A descriptor bound to the port it will listen on for this run."""
    descriptor: ServerDescriptor
    port: int

    @property
    def name(self) -> str:
        return self.descriptor.name


def plan_launches(servers: Sequence[ServerDescriptor], base_port: int) -> List[LaunchPlan]:
    """Assigns `base_port + index` to each server, in selection order."""
    return [LaunchPlan(descriptor=server, port=base_port + i) for i, server in enumerate(servers)]


def partition_batches(plans: Sequence[LaunchPlan], batch_size: int) -> List[List[LaunchPlan]]:
    """Splits plans into consecutive groups of at most `batch_size`."""
    if batch_size < 1:
        raise ValueError(f"batch_size must be at least 1, got {batch_size}")
    return [list(plans[i:i + batch_size]) for i in range(0, len(plans), batch_size)]


@dataclass(frozen=True)
class Running:
    name: str
    port: int
    pid: int


@dataclass(frozen=True)
class Failed:
    name: str
    error: str


LaunchOutcome = Union[Running, Failed]


class OutcomeLog:
    """
    Append-only record of launch outcomes, shared by the launch threads of a batch.
    Each plan contributes exactly one outcome.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.running: List[Running] = []
        self.failed: List[Failed] = []
        self._by_name: Dict[str, LaunchOutcome] = {}

    def record(self, outcome: LaunchOutcome) -> None:
        with self._lock:
            if outcome.name in self._by_name:
                raise ValueError(f"Outcome for '{outcome.name}' was already recorded.")
            self._by_name[outcome.name] = outcome
            if isinstance(outcome, Running):
                self.running.append(outcome)
            else:
                self.failed.append(outcome)

    def get(self, name: str) -> Optional[LaunchOutcome]:
        with self._lock:
            return self._by_name.get(name)

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_name)


#* --- Startup Race ---
class LaunchState(Enum):
    PENDING = "pending"
    RUNNING = "running"
    FAILED = "failed"


class StartupRace:
    """
    Resolves one launch exactly once from whichever event fires first:
    a spawn error, an exit, or the startup timer.

    The only transitions are PENDING -> RUNNING and PENDING -> FAILED. Resolving
    cancels the timer. `resolve` returns False for any event arriving after
    that, so the caller can route it to late-failure logging instead.
    """

    def __init__(self, plan: LaunchPlan) -> None:
        self.plan = plan
        self.state = LaunchState.PENDING
        self.outcome: Optional[LaunchOutcome] = None
        self._lock = threading.Lock()
        self._resolved = threading.Event()
        self._timer: Optional[threading.Timer] = None

    def resolve(self, outcome: LaunchOutcome) -> bool:
        with self._lock:
            if self.state is not LaunchState.PENDING:
                return False
            self.state = LaunchState.RUNNING if isinstance(outcome, Running) else LaunchState.FAILED
            self.outcome = outcome
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        self._resolved.set()
        return True

    def arm_timer(self, timeout: float, on_timeout: Callable[[], None]) -> None:
        """Starts the startup timer, unless the race is already resolved."""
        with self._lock:
            if self.state is not LaunchState.PENDING:
                return
            self._timer = threading.Timer(timeout, on_timeout)
            self._timer.daemon = True
            self._timer.start()

    @property
    def resolved(self) -> bool:
        return self._resolved.is_set()

    def wait(self) -> LaunchOutcome:
        """Blocks until the race is resolved and returns the outcome."""
        self._resolved.wait()
        return self.outcome
