"""
Command-line interface for the buildagent package.

This module provides the main CLI entry point for running a job-step.
"""

from .main import main_cli

__all__ = [
    "main_cli",
]
