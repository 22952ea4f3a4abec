"""
Process tree termination.

Commands are started in their own session, so a cancelled command is taken
down together with everything it spawned: each phase signals the surviving
process tree and waits, escalating from SIGTERM to SIGKILL.
"""

import logging
import os
import signal
from typing import List

import psutil

logger = logging.getLogger(__name__)

# Time to wait for processes to disappear after SIGKILL.
FORCE_KILL_TIMEOUT = 2.0


class ProcessTreeTerminator:
    """
    Terminates a process and all of its descendants with escalating force.

    Handles processes that exit between enumeration and signalling, zombie
    children, and children spawned while termination is in progress.
    """

    def __init__(self, grace_period: float = 5.0):
        self.grace_period = grace_period

    def terminate(self, pid: int, name: str) -> None:
        """
        Gracefully terminate ``pid`` and its process tree.

        Sends SIGTERM to the whole tree, waits up to the grace period, then
        SIGKILLs whatever is left. Never raises for processes that are
        already gone.
        """
        if pid <= 0:
            logger.warning(f"Invalid PID {pid} for {name}, skipping termination")
            return

        logger.info(f"Starting termination of {name} (PID: {pid}) and its process tree")

        try:
            parent = psutil.Process(pid)
        except psutil.NoSuchProcess:
            logger.info(f"Process {name} (PID: {pid}) already terminated")
            return
        except psutil.AccessDenied:
            logger.warning(f"Access denied to process {name} (PID: {pid}), attempting force kill")
            self._force_kill_process(pid)
            return

        phases = [
            {"name": "graceful", "signal": "SIGTERM", "timeout": self.grace_period, "force": False},
            {"name": "force_kill", "signal": "SIGKILL", "timeout": FORCE_KILL_TIMEOUT, "force": True},
        ]

        for phase_idx, phase in enumerate(phases):
            if not self._is_process_alive(parent) and phase_idx > 0:
                break

            children = self._get_process_children(parent)
            all_processes = ([parent] if self._is_process_alive(parent) else []) + children
            if not all_processes:
                break

            logger.info(f"Phase {phase['name']}: signalling {len(all_processes)} process(es) of {name}")
            signalled = self._apply_termination_signal(all_processes, phase)
            if not signalled:
                continue

            remaining = self._wait_for_termination(signalled, phase["timeout"])
            if not remaining:
                logger.info(f"All processes of {name} terminated in phase {phase['name']}")
                break
            logger.warning(f"Phase {phase['name']}: {len(remaining)} process(es) still alive")
            if phase_idx == len(phases) - 1:
                self._handle_stubborn_processes(remaining, name)

        self._cleanup_process_group(pid, name)
        logger.info(f"Termination completed for {name} (PID: {pid})")

    def _is_process_alive(self, process: psutil.Process) -> bool:
        """Safely check if a process is still alive and not a zombie."""
        try:
            if not process.is_running():
                return False
            return process.status() not in (psutil.STATUS_ZOMBIE, psutil.STATUS_DEAD)
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            return False

    def _get_process_children(self, parent: psutil.Process) -> List[psutil.Process]:
        """Safely get all live descendants of a process."""
        try:
            return [child for child in parent.children(recursive=True) if self._is_process_alive(child)]
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            return []

    def _apply_termination_signal(self, processes: List[psutil.Process], phase: dict) -> List[psutil.Process]:
        """Signal each process and return those that were signalled."""
        signalled = []
        for process in processes:
            try:
                if phase["force"]:
                    process.kill()
                else:
                    process.terminate()
                signalled.append(process)
                logger.debug(f"Sent {phase['signal']} to PID {process.pid}")
            except psutil.NoSuchProcess:
                continue
            except psutil.AccessDenied:
                logger.warning(f"Access denied sending {phase['signal']} to PID {process.pid}")
        return signalled

    def _wait_for_termination(self, processes: List[psutil.Process], timeout: float) -> List[psutil.Process]:
        """Wait for processes to terminate and return any that are still alive."""
        _, still_alive = psutil.wait_procs(processes, timeout=timeout)
        return [process for process in still_alive if self._is_process_alive(process)]

    def _handle_stubborn_processes(self, processes: List[psutil.Process], name: str) -> None:
        logger.error(f"Failed to terminate {len(processes)} stubborn process(es) for {name}")
        for process in processes:
            try:
                logger.error(f"Stubborn process: PID {process.pid}, name: {process.name()}, "
                             f"status: {process.status()}")
            except psutil.Error as e:
                logger.error(f"Could not get info for stubborn process PID {process.pid}: {e}")

    def _cleanup_process_group(self, pid: int, name: str) -> None:
        """Kill any remaining members of the command's process group."""
        try:
            os.killpg(pid, signal.SIGKILL)
            logger.debug(f"Sent SIGKILL to process group {pid} for {name}")
        except ProcessLookupError:
            pass
        except PermissionError:
            logger.debug(f"No permission to kill process group {pid}")

    def _force_kill_process(self, pid: int) -> None:
        """Force kill a single process by PID as last resort."""
        try:
            os.kill(pid, signal.SIGKILL)
            logger.warning(f"Force killed process PID {pid}")
        except ProcessLookupError:
            pass
        except PermissionError as e:
            logger.error(f"Failed to force kill PID {pid}: {e}")
