"""
The Supervisor package.
Launches the hub's adapters and tracks which of them started.

This package contains the central ProcessManager class and its helper modules,
which together handle port planning, batched launching, the startup race,
reporting, settings generation and signal handling.
"""
from .supervisor import ProcessManager

__all__ = ['ProcessManager']
