"""
Build plan runner for the orchestration module.

This module drives one job-step run: it reports the job-step and command
lifecycle to the server, runs commands in order through the executor,
forwards their output, collects artifacts after successful commands, and
keeps a heartbeat monitor running for the duration of the run.
"""

import logging
import socket
from dataclasses import replace
from typing import Optional

from ..executor import CommandExecutor
from ..models.api import CommandStatusUpdate, JobStepStatusUpdate
from ..models.config import AgentConfig, ServerConfig
from ..models.plan import BuildPlan, CommandSpec
from ..models.runtime import CommandRun, JobStepRun, Result, RunResult, Status
from ..validation import ErrorSeverity, ReportingError, handle_error
from .artifact_collector import ArtifactCollector
from .heartbeat_monitor import HeartbeatMonitor
from .log_transport import LogTransport
from .shared_state import RuntimeState

logger = logging.getLogger(__name__)


class BuildPlanRunner:
    """
    Runs a build plan and reports its progress.

    All status, log and artifact calls are made from the thread calling
    ``run``, so the server sees them in exactly the order they happen. The
    heartbeat monitor talks to the server through its own client.
    """

    def __init__(
        self,
        client,
        config: Optional[AgentConfig] = None,
        executor: Optional[CommandExecutor] = None,
        node: Optional[str] = None,
    ):
        self.client = client
        self.config = config or AgentConfig.defaults()
        self.executor = executor or CommandExecutor(self.config.process)
        self.node = node or socket.gethostname()

    def run(self, plan: BuildPlan) -> RunResult:
        """
        Run every command of ``plan`` in order and report the outcome.

        A failing or cancelled command stops the run with result ``failed``.
        A reporting error also stops it and is returned in ``RunResult.error``.
        The final job-step status is always attempted.
        """
        state = RuntimeState(plan=plan, jobstep=JobStepRun(plan.jobstep_id, self.node))
        log = LogTransport(self.client, self.config.logs)
        collector = ArtifactCollector(self.client, log)
        monitor = None
        heartbeat_client = None
        result = Result.FAILED

        logger.info(f"Starting job-step {plan.jobstep_id} with {len(plan.commands)} command(s) "
                    f"on {self.node}")
        try:
            state.jobstep.start()
            self.client.update_jobstep_status(
                JobStepStatusUpdate(status=Status.IN_PROGRESS, node=self.node)
            )

            heartbeat_client = self.client.clone(self._heartbeat_server_config())
            monitor = HeartbeatMonitor(
                heartbeat_client,
                self.config.heartbeat.interval_seconds,
                state.cancel_requested,
            )
            monitor.start()

            result = self._run_commands(state, log, collector)
        except (ReportingError, OSError) as e:
            state.error = e
            handle_error(e, f"job-step {plan.jobstep_id}", ErrorSeverity.ERROR,
                         reraise=False, logger=logger)
        finally:
            if monitor is not None:
                monitor.stop()
            if heartbeat_client is not None and heartbeat_client is not self.client:
                heartbeat_client.close()
            self._finish(state, result, log)

        final = Result.FAILED if state.error is not None else state.jobstep.result
        logger.info(f"Job-step {plan.jobstep_id} finished: {final.value}")
        return RunResult(result=final, commands=state.commands, error=state.error)

    def _heartbeat_server_config(self) -> ServerConfig:
        """One attempt per beat, never waiting longer than the beat interval."""
        server = self.config.server
        return replace(
            server,
            timeout_seconds=min(server.timeout_seconds, self.config.heartbeat.interval_seconds),
            max_attempts=1,
            retry_delay_seconds=0.0,
        )

    def _run_commands(self, state: RuntimeState, log: LogTransport,
                      collector: ArtifactCollector) -> Result:
        for spec in state.plan.commands:
            if state.cancel_requested.is_set():
                log.write("Run cancelled by server, skipping remaining commands\n")
                return Result.FAILED
            if not self._run_command(spec, state, log, collector):
                return Result.FAILED
        return Result.PASSED

    def _run_command(self, spec: CommandSpec, state: RuntimeState, log: LogTransport,
                     collector: ArtifactCollector) -> bool:
        """Run one command. Returns True if it succeeded."""
        command = CommandRun(spec.id)
        state.commands.append(command)

        command.start()
        self.client.update_command_status(spec.id, CommandStatusUpdate(status=Status.IN_PROGRESS))
        log.write(f">> {spec.id}\n")

        execution = self.executor.execute(spec, log, state.cancel_requested, state.plan.workspace)
        log.flush()
        if not execution.succeeded:
            log.write(f"{execution.error}\n")

        command.finish(execution)
        self.client.update_command_status(
            spec.id,
            CommandStatusUpdate(status=Status.FINISHED, return_code=execution.reported_return_code),
        )
        if not execution.succeeded:
            logger.info(f"Command {spec.id} failed ({execution.error}), stopping run")
            return False

        artifacts = collector.collect(spec.artifacts, state.plan.workspace)
        log.write(f"Found {len(artifacts)} matching artifact(s)\n")
        collector.upload(artifacts)
        return True

    def _finish(self, state: RuntimeState, result: Result, log: LogTransport) -> None:
        """Report the final job-step status, even after a reporting failure."""
        if state.error is None:
            try:
                log.flush()
            except ReportingError as e:
                state.error = e
                result = Result.FAILED
                handle_error(e, "final log flush", ErrorSeverity.ERROR, reraise=False, logger=logger)

        state.jobstep.finish(result)
        try:
            self.client.update_jobstep_status(
                JobStepStatusUpdate(status=Status.FINISHED, node=self.node, result=result)
            )
        except ReportingError as e:
            if state.error is None:
                state.error = e
            handle_error(e, "final job-step status", ErrorSeverity.ERROR, reraise=False, logger=logger)
