"""
Command execution for the buildagent package.

``CommandExecutor`` runs a single command spec as a child process and
``ProcessTreeTerminator`` takes down a cancelled command's process tree.
"""

from .command_process import CommandExecutor
from .termination import ProcessTreeTerminator

__all__ = [
    "CommandExecutor",
    "ProcessTreeTerminator",
]
