"""
Reporting client for the coordinating build server.

All status, log, artifact and heartbeat traffic goes through
``ReportingClient``.
"""

from .reporting_client import ReportingClient

__all__ = [
    "ReportingClient",
]
