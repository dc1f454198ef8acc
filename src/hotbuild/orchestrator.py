"""Build-run state machine: compile on signal, replace the running child."""

from __future__ import annotations

import logging
import threading

from hotbuild.backends.base import CompileJob, CompileResult, CompilerBackend, ProcessBackend, ProcessSpec
from hotbuild.config import Settings
from hotbuild.errors import BuildError, HotbuildError, ProcessLifecycleError
from hotbuild.models import (
    BuildAttempt,
    BuildOutcome,
    BuildSpec,
    OrchestratorState,
    RunningProcess,
)
from hotbuild.observability import EventLog
from hotbuild.signals import LatestSignal

logger = logging.getLogger(__name__)

STDERR_LIMIT = 4000


class Orchestrator:
    """Consumes rebuild signals on a dedicated thread.

    Builds, process replacement and shutdown all run on that one thread, so
    at most one compiler and one child process exist at any time. A signal
    that arrives while a child is being replaced waits in the signal slot
    until the replacement is done.
    """

    def __init__(
        self,
        spec: BuildSpec,
        *,
        log: EventLog,
        signals: LatestSignal,
        compiler: CompilerBackend,
        processes: ProcessBackend,
        settings: Settings,
    ) -> None:
        self.spec = spec
        self.log = log
        self.signals = signals
        self.compiler = compiler
        self.processes = processes
        self.settings = settings
        self.state = OrchestratorState.IDLE
        self.running: RunningProcess | None = None
        self.last_attempt: BuildAttempt | None = None
        self.last_error: HotbuildError | None = None
        self._sequence = 0
        self._stopping = threading.Event()
        self._thread = threading.Thread(target=self._run, name="hotbuild-orchestrator", daemon=True)

    @property
    def alive(self) -> bool:
        return self._thread.is_alive()

    def start(self) -> None:
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        """Stop accepting signals, abort any compile and terminate the child."""
        self._stopping.set()
        self.signals.close()
        if self._thread.is_alive():
            self._thread.join(timeout)

    def _run(self) -> None:
        try:
            if self.settings.initial_build:
                self._serve()
            while not self._stopping.is_set():
                signal = self.signals.take(timeout=self.settings.poll_interval)
                if self._stopping.is_set():
                    break
                self._reap()
                if signal is not None:
                    logger.debug(
                        "serving rebuild signal %d (%d coalesced so far)",
                        signal.sequence,
                        self.signals.replaced,
                    )
                    self._serve()
        finally:
            self._shutdown()

    def _serve(self) -> None:
        """Run one build; an unexpected failure is reported and the loop goes on."""
        try:
            self._build()
        except Exception as exc:
            logger.exception("build #%d raised an unexpected error", self._sequence)
            attempt = self.last_attempt
            if attempt is not None and attempt.in_flight:
                attempt.finish(BuildOutcome.FAILURE, returncode=None, stderr=str(exc))
            error = BuildError(
                "Unexpected error while building or replacing the program.",
                hint="Run with --verbose for the full traceback.",
                context={"error": f"{type(exc).__name__}: {exc}"},
            )
            self._fail(self._sequence, error)

    def _build(self) -> None:
        self._sequence += 1
        attempt = BuildAttempt(sequence=self._sequence)
        self.last_attempt = attempt
        self.state = OrchestratorState.BUILDING
        args = self.spec.compiler_args()
        self.log.info(f"Build #{attempt.sequence}: {self.settings.compiler} {' '.join(args)}")

        try:
            job = self.compiler.start(args, cwd=self.spec.primary_root)
        except BuildError as exc:
            attempt.finish(BuildOutcome.FAILURE, returncode=None, stderr=str(exc))
            self._fail(attempt.sequence, exc)
            return

        result = self._await(job)
        if result is None:
            attempt.finish(BuildOutcome.CANCELLED, returncode=None)
            reason = "shutdown" if self._stopping.is_set() else "a newer change"
            self.log.info(f"Build #{attempt.sequence} cancelled by {reason}.")
            self.state = self._settled_state()
            return

        if not result.ok:
            stderr = result.stderr.strip()
            attempt.finish(BuildOutcome.FAILURE, returncode=result.returncode, stderr=stderr)
            self._fail(
                attempt.sequence,
                BuildError(
                    "Compiler exited with a non-zero status.",
                    context={
                        "returncode": str(result.returncode),
                        "stderr": _tail(stderr),
                    },
                ),
            )
            return

        attempt.finish(BuildOutcome.SUCCESS, returncode=result.returncode, stderr=result.stderr)
        self.log.success(f"Build #{attempt.sequence} succeeded in {attempt.duration:.2f}s.")
        self._replace(attempt)

    def _await(self, job: CompileJob) -> CompileResult | None:
        """Wait for the compiler; ``None`` means it was cancelled."""
        while True:
            result = job.wait(timeout=self.settings.poll_interval)
            if result is not None:
                return result
            superseded = self.settings.cancel_superseded and self.signals.pending
            if self._stopping.is_set() or superseded:
                job.cancel()
                job.wait()
                return None

    def _fail(self, sequence: int, error: BuildError) -> None:
        self.last_error = error
        self.state = OrchestratorState.BUILD_FAILED
        self.log.error(f"Build #{sequence} failed: {error}")

    def _replace(self, attempt: BuildAttempt) -> None:
        if self._stopping.is_set():
            self.log.info(f"Build #{attempt.sequence} finished during shutdown; not starting it.")
            self.state = self._settled_state()
            return

        if self.running is not None and not self._terminate_running():
            self.log.error(
                f"Process from build #{attempt.sequence} was not started "
                "because the previous process is still alive."
            )
            self.state = OrchestratorState.BUILD_FAILED
            return

        spec = ProcessSpec(
            executable=self.spec.output_path,
            cwd=self.spec.working_dir,
            args=self.spec.app_args,
        )
        self.log.info(f"Starting process: {' '.join(spec.argv)}")
        try:
            handle = self.processes.start(spec)
        except ProcessLifecycleError as exc:
            self.last_error = exc
            self.state = OrchestratorState.IDLE
            self.log.error(f"Failed to start process from build #{attempt.sequence}: {exc}")
            return

        self.running = RunningProcess(handle=handle, sequence=attempt.sequence)
        self.state = OrchestratorState.RUNNING
        self.log.info(f"Process from build #{attempt.sequence} started.")

    def _terminate_running(self) -> bool:
        running = self.running
        assert running is not None
        self.log.info(f"Stopping process from build #{running.sequence}: {self.spec.output_path}")
        try:
            returncode = self.processes.terminate(running.handle, self.settings.grace_period)
        except ProcessLifecycleError as exc:
            self.last_error = exc
            self.log.error(f"Failed to stop process from build #{running.sequence}: {exc}")
            return False
        self.running = None
        self.log.info(f"Process from build #{running.sequence} stopped (exit code {returncode}).")
        return True

    def _reap(self) -> None:
        """Forget a child that exited on its own."""
        running = self.running
        if running is None:
            return
        returncode = self.processes.poll(running.handle)
        if returncode is None:
            return
        self.running = None
        if self.state is OrchestratorState.RUNNING:
            self.state = OrchestratorState.IDLE
        self.log.warning(f"Process from build #{running.sequence} exited with code {returncode}.")

    def _settled_state(self) -> OrchestratorState:
        if self.running is not None:
            return OrchestratorState.RUNNING
        return OrchestratorState.IDLE

    def _shutdown(self) -> None:
        if self.running is not None:
            self._terminate_running()
        self.state = self._settled_state()
        self.log.info("Orchestrator stopped.")


def _tail(stderr: str) -> str:
    """Keep the end of the compiler output, where the diagnostics are."""
    if len(stderr) <= STDERR_LIMIT:
        return stderr
    return "...\n" + stderr[-STDERR_LIMIT:]
