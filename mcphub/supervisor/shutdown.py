"""
Signal handling for the hub process.

Known limitation: the handler does not enumerate or kill the adapters it
started. They share the hub's process group, so a terminal Ctrl+C reaches
them directly, and a service manager that stops the hub's group or cgroup
stops them too. A plain `kill <hub pid>` leaves them running.
"""
import sys
import signal
import logging
import threading
from functools import partial
from typing import Optional

log = logging.getLogger(__name__)


def _handle_signal(signum, frame, stop_event: Optional[threading.Event] = None) -> None:
    print("\nShutting down all gateways...")
    log.info(f"Received {signal.Signals(signum).name}. Exiting.")
    if stop_event is not None:
        # Wakes the supervision loop and any other thread waiting on it.
        stop_event.set()
    sys.exit(0)


def install_signal_handlers(stop_event: Optional[threading.Event] = None) -> None:
    """
    Makes SIGINT and SIGTERM exit the hub with status 0.

    :param stop_event: Set before exiting, usually the manager's `shutdown_signal_received`.
    """
    handler = partial(_handle_signal, stop_event=stop_event)
    signal.signal(signal.SIGINT, handler)
    signal.signal(signal.SIGTERM, handler)
