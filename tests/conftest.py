import logging

import psutil
import pytest

from mcphub.config import HubConfig
from mcphub.supervisor import ProcessManager
from mcphub.supervisor.process_utils import build_direct_args


@pytest.fixture
def managers():
    """Creates direct-launch ProcessManagers and kills whatever they left running."""
    created = []

    def _make(config: HubConfig) -> ProcessManager:
        manager = ProcessManager(config, command_builder=build_direct_args)
        created.append(manager)
        return manager

    yield _make

    for manager in created:
        for outcome in manager.outcomes.running:
            try:
                psutil.Process(outcome.pid).kill()
            except psutil.NoSuchProcess:
                pass


@pytest.fixture
def restore_root_logging():
    """setup_logging() replaces the root handlers; put pytest's back afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
