"""
Command execution.

Runs one command spec as a child process, streaming its combined
stdout/stderr into an output sink while watching for cancellation.

The output sink is any object with two methods:

- ``append(data)``: queue raw console output bytes
- ``flush_if_due()``: forward queued text if it is big or old enough

Both are only ever called from the thread that called ``execute``.
"""

import logging
import os
import queue
import subprocess
import tempfile
import threading
import time
from pathlib import Path
from typing import Any, List, Optional

from ..models.config import ProcessConfig
from ..models.plan import CommandSpec
from ..models.runtime import RETURN_CODE_CANCELLED, RETURN_CODE_SPAWN_FAILED, ExecutionResult
from ..validation import CommandCancelledError, CommandFailedError, CommandSpawnError
from .termination import ProcessTreeTerminator

logger = logging.getLogger(__name__)

# Bytes read from the pipe per call.
READ_CHUNK_SIZE = 8192
# How long output is still collected after the command exits while a
# background child keeps the pipe open.
OUTPUT_DRAIN_TIMEOUT = 2.0
# How long to wait for the pipe reader thread at the end of a command.
READER_JOIN_TIMEOUT = 1.0


def _pipe_reader(pipe: Any, output_queue: "queue.Queue[Optional[bytes]]") -> None:
    """Move raw bytes from ``pipe`` into ``output_queue``; ``None`` marks EOF."""
    try:
        fd = pipe.fileno()
        while True:
            data = os.read(fd, READ_CHUNK_SIZE)
            if not data:
                break
            output_queue.put(data)
    except (OSError, ValueError) as e:
        # The pipe is closed underneath us when the executor gives up draining.
        logger.debug(f"Output reader stopped: {e}")
    finally:
        output_queue.put(None)


class CommandExecutor:
    """
    Runs command specs as child processes.

    Each command gets its own session so cancellation can take down the whole
    process tree. Scripts are written to a temporary file; a script starting
    with ``#!`` is executed directly, anything else is run by the configured
    shell.
    """

    def __init__(self, config: Optional[ProcessConfig] = None):
        self.config = config or ProcessConfig()
        self._terminator = ProcessTreeTerminator(self.config.termination_grace_seconds)

    def execute(
        self,
        spec: CommandSpec,
        output_sink: Any,
        cancel_event: threading.Event,
        workspace: Path,
    ) -> ExecutionResult:
        """
        Run ``spec`` to completion, or until ``cancel_event`` is set.

        Returns an ``ExecutionResult`` whose ``error`` describes why the
        command did not succeed: ``CommandSpawnError`` if it never started,
        ``CommandCancelledError`` if it was terminated, ``CommandFailedError``
        for a non-zero exit. Never raises for command failures.
        """
        if cancel_event.is_set():
            logger.info(f"Not starting command {spec.id}: run was cancelled")
            return ExecutionResult(RETURN_CODE_CANCELLED, CommandCancelledError())

        script_path = None
        try:
            script_path = self._write_script(spec)
            process = self._spawn(spec, script_path, workspace)
        except OSError as e:
            if script_path is not None:
                self._remove_script(script_path)
            logger.error(f"Failed to start command {spec.id}: {e}")
            return ExecutionResult(
                RETURN_CODE_SPAWN_FAILED,
                CommandSpawnError(f"failed to start command {spec.id}: {e}"),
            )

        logger.info(f"Started command {spec.id} (PID: {process.pid})")
        try:
            cancelled = self._stream_output(spec, process, output_sink, cancel_event)
        finally:
            self._cleanup(process, script_path)

        if cancelled:
            logger.info(f"Command {spec.id} cancelled")
            return ExecutionResult(RETURN_CODE_CANCELLED, CommandCancelledError())

        return_code = process.returncode
        logger.info(f"Command {spec.id} exited with status {return_code}")
        if return_code != 0:
            return ExecutionResult(return_code, CommandFailedError(return_code))
        return ExecutionResult(0)

    def build_argv(self, script: str, script_path: str) -> List[str]:
        """Return the argv used to run a script stored at ``script_path``."""
        if script.startswith("#!"):
            return [script_path]
        return [self.config.shell, script_path]

    def build_env(self, spec: CommandSpec) -> dict:
        """The agent's environment overlaid with the command's variables."""
        env = dict(os.environ)
        env.update(spec.env)
        return env

    def _write_script(self, spec: CommandSpec) -> str:
        fd, path = tempfile.mkstemp(prefix="buildagent-", suffix=".sh")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(spec.script)
            os.chmod(path, 0o700)
        except OSError:
            self._remove_script(path)
            raise
        return path

    def _spawn(self, spec: CommandSpec, script_path: str, workspace: Path) -> subprocess.Popen:
        cwd = spec.resolve_cwd(workspace)
        argv = self.build_argv(spec.script, script_path)
        logger.debug(f"Spawning command {spec.id}: {argv} in {cwd}")
        return subprocess.Popen(
            argv,
            cwd=str(cwd),
            env=self.build_env(spec),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            start_new_session=True,
        )

    def _stream_output(
        self,
        spec: CommandSpec,
        process: subprocess.Popen,
        output_sink: Any,
        cancel_event: threading.Event,
    ) -> bool:
        """
        Forward output until EOF or cancellation.

        Returns True if the command was cancelled.
        """
        output_queue: "queue.Queue[Optional[bytes]]" = queue.Queue()
        reader = threading.Thread(
            target=_pipe_reader,
            args=(process.stdout, output_queue),
            name=f"output-reader-{spec.id}",
            daemon=True,
        )
        reader.start()

        poll_interval = self.config.output_poll_interval
        exited_at = None
        cancelled = False

        while True:
            if cancel_event.is_set():
                self._terminator.terminate(process.pid, f"command {spec.id}")
                process.wait()
                cancelled = True
                break

            try:
                data = output_queue.get(timeout=poll_interval)
            except queue.Empty:
                data = b""
            if data is None:
                break
            if data:
                output_sink.append(data)
            output_sink.flush_if_due()

            if exited_at is None:
                if process.poll() is not None:
                    exited_at = time.monotonic()
            elif time.monotonic() - exited_at > OUTPUT_DRAIN_TIMEOUT:
                logger.warning(
                    f"Command {spec.id} exited but its output pipe is still open, "
                    f"stopping output collection"
                )
                break

        if not cancelled:
            process.wait()
        self._drain_queue(output_queue, output_sink)
        reader.join(timeout=READER_JOIN_TIMEOUT)
        return cancelled

    def _drain_queue(self, output_queue: "queue.Queue[Optional[bytes]]", output_sink: Any) -> None:
        """Forward anything still queued without blocking."""
        while True:
            try:
                data = output_queue.get_nowait()
            except queue.Empty:
                break
            if data:
                output_sink.append(data)

    def _cleanup(self, process: subprocess.Popen, script_path: str) -> None:
        if process.poll() is None:
            self._terminator.terminate(process.pid, f"PID {process.pid}")
            process.wait()
        if process.stdout is not None:
            try:
                process.stdout.close()
            except OSError as e:
                logger.debug(f"Error closing output pipe: {e}")
        self._remove_script(script_path)

    @staticmethod
    def _remove_script(path: str) -> None:
        try:
            os.unlink(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove temporary script {path}: {e}")
