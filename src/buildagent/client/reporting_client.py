"""HTTP client for the coordinating build server."""

import logging
from typing import Any, Callable, Dict, Optional, TypeVar

import requests
from requests import Response

from ..models.api import (
    ARTIFACT_FILE_FIELD,
    ArtifactUpload,
    CommandStatusUpdate,
    JobStepState,
    JobStepStatusUpdate,
    LogAppend,
)
from ..models.config import ServerConfig
from ..validation import (
    ErrorSeverity,
    ReportingError,
    ReportingHTTPError,
    ReportingTransportError,
    handle_reporting_error,
    simple_retry,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')


def _is_retryable(error: Exception) -> bool:
    if isinstance(error, ReportingHTTPError):
        return error.retryable
    return isinstance(error, ReportingTransportError)


class ReportingClient:
    """
    Reports job-step progress to the coordinating server.

    Every call is retried according to ``ServerConfig``: connection failures
    and 5xx responses are retried, 4xx responses are not. A call that still
    fails raises a ``ReportingError``; callers decide whether that is fatal.

    A client instance owns one ``requests.Session`` and must only be used from
    one thread at a time.
    """

    def __init__(
        self,
        server_url: str,
        jobstep_id: str,
        config: Optional[ServerConfig] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._base_url = server_url.rstrip("/")
        self.jobstep_id = jobstep_id
        self.config = config or ServerConfig()
        self._session = session or requests.Session()

    def clone(self, config: Optional[ServerConfig] = None) -> "ReportingClient":
        """
        Return a client for the same job-step with its own HTTP session.

        ``config`` replaces this client's retry and timeout settings for the
        clone, so a background caller can use tighter bounds.
        """
        return ReportingClient(self._base_url, self.jobstep_id, config or self.config)

    # --- Endpoints ---

    def update_jobstep_status(self, update: JobStepStatusUpdate) -> None:
        self._call(
            f"job-step status {update.status.value}",
            lambda: self._request("POST", f"/jobsteps/{self.jobstep_id}/", data=update.to_form()),
        )

    def update_command_status(self, command_id: str, update: CommandStatusUpdate) -> None:
        self._call(
            f"command {command_id} status {update.status.value}",
            lambda: self._request("POST", f"/commands/{command_id}/", data=update.to_form()),
        )

    def append_log(self, entry: LogAppend) -> None:
        self._call(
            "log append",
            lambda: self._request(
                "POST", f"/jobsteps/{self.jobstep_id}/logappend/", data=entry.to_form()
            ),
        )

    def upload_artifact(self, upload: ArtifactUpload) -> None:
        def send() -> Response:
            # Reopened per attempt so a retry sends the whole file again.
            with open(upload.path, "rb") as handle:
                return self._request(
                    "POST",
                    f"/jobsteps/{self.jobstep_id}/artifacts/",
                    data=upload.to_form(),
                    files={ARTIFACT_FILE_FIELD: (upload.name, handle, "application/octet-stream")},
                )

        self._call(f"artifact upload {upload.name}", send)

    def heartbeat(self) -> JobStepState:
        response = self._call(
            "heartbeat",
            lambda: self._request("POST", f"/jobsteps/{self.jobstep_id}/heartbeat/"),
        )
        return JobStepState.from_dict(self._decode_json(response, "heartbeat"))

    def fetch_jobstep(self) -> JobStepState:
        response = self._call(
            "fetch job-step",
            lambda: self._request("GET", f"/jobsteps/{self.jobstep_id}/"),
        )
        return JobStepState.from_dict(self._decode_json(response, "fetch job-step"))

    # --- Lifecycle ---

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "ReportingClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # --- Internals ---

    def _call(self, description: str, func: Callable[[], T]) -> T:
        try:
            return simple_retry(
                func,
                max_attempts=self.config.max_attempts,
                delay=self.config.retry_delay_seconds,
                context=description,
                should_retry=_is_retryable,
            )
        except ReportingHTTPError as e:
            if e.retryable:
                raise ReportingTransportError(
                    f"{description} failed after {self.config.max_attempts} attempt(s): {e}"
                ) from e
            handle_reporting_error(e, description, severity=ErrorSeverity.ERROR, reraise=False, logger=logger)
            raise
        except ReportingTransportError as e:
            raise ReportingTransportError(
                f"{description} failed after {self.config.max_attempts} attempt(s): {e}"
            ) from e

    def _request(self, method: str, path: str, **kwargs: Any) -> Response:
        url = f"{self._base_url}{path}"
        logger.debug(f"{method} {url}")
        try:
            response = self._session.request(
                method,
                url,
                timeout=self.config.timeout_seconds,
                **kwargs,
            )
        except requests.RequestException as exc:
            raise ReportingTransportError(str(exc)) from exc
        except OSError as exc:
            raise ReportingTransportError(f"{method} {path}: {exc}") from exc
        if response.status_code >= 400:
            raise ReportingHTTPError(
                f"{method} {path} returned HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _decode_json(response: Response, description: str) -> Dict[str, Any]:
        try:
            return response.json()
        except ValueError as exc:
            raise ReportingError(f"{description} returned invalid JSON") from exc
