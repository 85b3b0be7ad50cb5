import psutil
import logging
import threading
import subprocess
from collections import deque
from typing import Callable, Dict, List, Mapping, Optional

from mcphub.config import HubConfig
from mcphub.registry import ServerDescriptor
from mcphub.supervisor.outcomes import LaunchPlan

log = logging.getLogger(__name__)

CommandBuilder = Callable[[HubConfig, LaunchPlan], List[str]]


#* --- Process Status ---
def is_process_alive(pid: int) -> bool:
    """True if the process exists and is not a zombie."""
    try:
        proc = psutil.Process(pid)
        return proc.is_running() and proc.status() != psutil.STATUS_ZOMBIE
    except psutil.NoSuchProcess:
        return False
    except psutil.Error:
        # Exists, but we may not inspect it.
        return True


def has_exited(process: subprocess.Popen) -> bool:
    """
    Checks for exit without touching the Popen wait lock, which the exit
    watcher thread holds while it blocks in wait().
    """
    if process.returncode is not None:
        return True
    return not is_process_alive(process.pid)


#* --- Process Creation ---
def build_adapter_args(config: HubConfig, plan: LaunchPlan) -> List[str]:
    """Returns the supergateway command line that exposes `plan` on its port."""
    return [
        config.adapter_bin,
        "--stdio", plan.descriptor.invocation(),
        "--outputTransport", config.output_transport,
        "--port", str(plan.port),
        "--cors",
        "--logLevel", "none",
        "--healthEndpoint", config.health_path,
    ]


def build_direct_args(config: HubConfig, plan: LaunchPlan) -> List[str]:
    """Runs the descriptor's command itself, without an adapter in front of it."""
    return [plan.descriptor.command, *plan.descriptor.args]


def build_child_env(base_env: Mapping[str, str], descriptor: ServerDescriptor) -> Dict[str, str]:
    """The base environment overlaid with the descriptor's non-empty env values."""
    child_env = dict(base_env)
    child_env.update(descriptor.effective_env())
    return child_env


def spawn_process(args: List[str], env: Mapping[str, str]) -> subprocess.Popen:
    """
    Starts a child with stdin closed and both output pipes captured.

    The child stays in the hub's process group so a terminal Ctrl+C (or a
    service manager stopping the group) reaches it too.
    """
    return subprocess.Popen(
        args,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        env=dict(env),
    )


#* --- Output Capture ---
class OutputTail:
    """Thread-safe bounded buffer holding the most recent lines of a stream."""

    def __init__(self, max_lines: int) -> None:
        self._lines = deque(maxlen=max_lines)
        self._lock = threading.Lock()

    def append(self, line: str) -> None:
        with self._lock:
            self._lines.append(line)

    def last(self, count: int) -> List[str]:
        with self._lock:
            return list(self._lines)[-count:] if count > 0 else []


def _read_pipe(pipe, process_name: str, level: int, line_handler: Optional[Callable[[str], None]] = None):
    """Target function for reader threads. Reads and logs lines from a subprocess pipe."""
    proc_logger = logging.getLogger(f"proc.{process_name}")
    try:
        for line_bytes in iter(pipe.readline, b""):
            line = line_bytes.decode("utf-8", errors="replace").rstrip()
            if not line:
                continue
            if line_handler:
                line_handler(line)
            proc_logger.log(level, line)
    except (OSError, ValueError) as e:
        proc_logger.debug(f"Pipe reader for {process_name} stream exited: {e}")
    finally:
        pipe.close()


def log_process_output(process: subprocess.Popen, name: str, stderr_tail: OutputTail) -> Optional[threading.Thread]:
    """
    Starts background threads that consume a child's stdout and stderr for its
    whole lifetime. Stderr lines are also kept in `stderr_tail` for error messages.

    :return: The stderr reader thread, so callers can let it drain after an exit.
    """
    if process.stdout:
        threading.Thread(target=_read_pipe, args=(process.stdout, name, logging.DEBUG), daemon=True, name=f"stdout-{name}").start()
    if process.stderr:
        reader = threading.Thread(target=_read_pipe, args=(process.stderr, name, logging.DEBUG, stderr_tail.append), daemon=True, name=f"stderr-{name}")
        reader.start()
        return reader
    return None


def watch_exit(process: subprocess.Popen, on_exit: Callable[[int], None]) -> threading.Thread:
    """Starts a thread that waits for the child and calls `on_exit` with its exit code."""
    def _wait() -> None:
        on_exit(process.wait())

    watcher = threading.Thread(target=_wait, daemon=True, name=f"exit-watch-{process.pid}")
    watcher.start()
    return watcher


def format_exit_error(code: int, stderr_lines: List[str]) -> str:
    """Builds the failure message for a child that exited during startup."""
    if stderr_lines:
        return f"exit code {code}: {' | '.join(line.strip() for line in stderr_lines)}"
    return f"exit code {code}"
