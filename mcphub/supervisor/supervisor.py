import time
import logging
import threading
from pathlib import Path
from typing import List, Optional, Sequence

from mcphub import settings as default_settings
from mcphub.config import HubConfig
from mcphub.registry import ServerDescriptor
from mcphub.supervisor import process_utils, report
from mcphub.supervisor.outcomes import (
    Failed, LaunchOutcome, LaunchPlan, OutcomeLog, Running, StartupRace, partition_batches, plan_launches,
)
from mcphub.supervisor.settings_file import generate_settings

log = logging.getLogger(__name__)


class ProcessManager:
    """
    Launches the selected servers behind their adapters, batch by batch, and
    records one outcome per server.

    A launch counts as running when its process is still alive once the
    startup timeout has elapsed. That is a heuristic; the adapter offers no
    readiness signal on its pipes.
    """

    def __init__(self, config: HubConfig, command_builder: process_utils.CommandBuilder = process_utils.build_adapter_args) -> None:
        """
        :param config: The configuration for this run.
        :param command_builder: Produces the argv for a plan. Defaults to wrapping it in the adapter.
        """
        self.config = config
        self.command_builder = command_builder
        self.outcomes = OutcomeLog()
        self.shutdown_signal_received = threading.Event()

    #* --- Single Launch ---
    def launch_server(self, plan: LaunchPlan) -> LaunchOutcome:
        """
        Spawns one child and blocks until its startup race resolves.
        Never raises for per-launch problems; they become Failed outcomes.
        """
        name = plan.name
        race = StartupRace(plan)
        stderr_tail = process_utils.OutputTail(default_settings.STDERR_TAIL_LINES)
        process = stderr_reader = None

        def on_exit(code: int) -> None:
            if stderr_reader is not None:
                # Let the reader drain what the child wrote before it died.
                stderr_reader.join(timeout=0.5)
            excerpt = stderr_tail.last(default_settings.EARLY_EXIT_EXCERPT_LINES)
            if race.resolve(Failed(name=name, error=process_utils.format_exit_error(code, excerpt))):
                return
            self._log_late_exit(plan, code, stderr_tail)

        def on_timeout() -> None:
            if process_utils.has_exited(process):
                # The exit watcher owns this resolution.
                return
            race.resolve(Running(name=name, port=plan.port, pid=process.pid))

        try:
            args = self.command_builder(self.config, plan)
            child_env = process_utils.build_child_env(self.config.environ, plan.descriptor)
            log.debug(f"Starting {name} on port {plan.port}: {args}")
            process = process_utils.spawn_process(args, child_env)
            stderr_reader = process_utils.log_process_output(process, name, stderr_tail)
            process_utils.watch_exit(process, on_exit)
        except Exception as e:
            if process is not None and not process_utils.has_exited(process):
                # Nothing is watching this child; don't leave it behind.
                process.kill()
            race.resolve(Failed(name=name, error=f"spawn failed: {e}"))
            return self._record(race)

        race.arm_timer(self.config.startup_timeout, on_timeout)
        return self._record(race)

    def _record(self, race: StartupRace) -> LaunchOutcome:
        outcome = race.wait()
        self.outcomes.record(outcome)
        if isinstance(outcome, Running):
            log.info(f"{outcome.name} is up on port {outcome.port} (PID: {outcome.pid}).")
        else:
            log.warning(f"{outcome.name} failed to start: {outcome.error}")
        return outcome

    def _log_late_exit(self, plan: LaunchPlan, code: int, stderr_tail: process_utils.OutputTail) -> None:
        """A running adapter died. Its recorded outcome stays Running."""
        log.error(f"[DIED] {plan.name} (port {plan.port}) exited with code {code}")
        lines = stderr_tail.last(default_settings.LATE_EXIT_EXCERPT_LINES)
        if lines:
            log.error(f"[DIED] {plan.name} stderr:\n" + "\n".join(lines))

    #* --- Batches ---
    def launch_batch(self, batch: Sequence[LaunchPlan]) -> None:
        """Starts every launch of the batch at once and returns when all have resolved."""
        threads = [
            threading.Thread(target=self.launch_server, args=(plan,), daemon=True, name=f"launch-{plan.name}")
            for plan in batch
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

    def launch_all(self, plans: Sequence[LaunchPlan]) -> OutcomeLog:
        """Runs the batches strictly in order, printing each batch once it has resolved."""
        batches = partition_batches(plans, self.config.batch_size)
        for number, batch in enumerate(batches, start=1):
            log.debug(f"Launching batch {number}/{len(batches)} ({len(batch)} servers).")
            self.launch_batch(batch)
            report.print_batch(batch, self.outcomes)
        return self.outcomes

    #* --- Full Run ---
    def run(self, servers: Sequence[ServerDescriptor]) -> OutcomeLog:
        """
        Launches the selected servers, prints the summary and writes the settings
        artifact for the ones that started. Partial failure is not an error.

        :param servers: The selected working set, in launch order.
        :return: The outcome log for this run.
        """
        plans = plan_launches(servers, self.config.base_port)
        report.print_banner(plans, self.config)
        start_time = time.time()

        self.launch_all(plans)

        report.print_summary(self.outcomes, len(plans))
        log.info(f"Launch finished in {time.time() - start_time:.2f} seconds.")

        settings_path: Path = generate_settings(self.config, running=self.outcomes.running)
        report.print_settings_written(settings_path)
        return self.outcomes

    def alive_servers(self) -> List[Running]:
        return [outcome for outcome in self.outcomes.running if process_utils.is_process_alive(outcome.pid)]

    def supervision_loop(self, sleep_interval: Optional[float] = None) -> None:
        """
        Keeps the hub in the foreground while any adapter it started is alive.
        Returns once every running adapter has exited, or when
        `shutdown_signal_received` is set by the SIGINT/SIGTERM handler.
        """
        interval = default_settings.SUPERVISOR_SLEEP_INTERVAL if sleep_interval is None else sleep_interval
        if self.outcomes.running:
            print("Press Ctrl+C to stop all servers.\n")

        while not self.shutdown_signal_received.is_set():
            if not self.alive_servers():
                if self.outcomes.running:
                    log.warning("Every adapter started by this hub has exited. Stopping.")
                return
            self.shutdown_signal_received.wait(interval)
