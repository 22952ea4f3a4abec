"""
Unit tests for the reporting client.

The HTTP session is mocked; tests check the requests that are built and the
retry behaviour for connection errors, 4xx and 5xx responses.
"""

from pathlib import Path
from unittest.mock import Mock

import pytest
import requests

from buildagent.client import ReportingClient
from buildagent.models import CommandStatusUpdate, JobStepStatusUpdate, Result, ServerConfig, Status
from buildagent.models.api import ArtifactUpload, LogAppend
from buildagent.validation import ReportingError, ReportingHTTPError, ReportingTransportError


def make_response(status_code=200, payload=None, text=""):
    response = Mock()
    response.status_code = status_code
    response.text = text
    if payload is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def session():
    mock_session = Mock(spec=requests.Session)
    mock_session.request.return_value = make_response()
    return mock_session


@pytest.fixture
def client(session):
    config = ServerConfig(timeout_seconds=3.0, max_attempts=3, retry_delay_seconds=0.0)
    return ReportingClient("http://server/api/0/", "job_1", config=config, session=session)


@pytest.mark.unit
class TestEndpoints:
    """Each call hits the right path with the right form."""

    def test_jobstep_status(self, client, session):
        client.update_jobstep_status(JobStepStatusUpdate(Status.FINISHED, node="host", result=Result.PASSED))

        session.request.assert_called_once_with(
            "POST",
            "http://server/api/0/jobsteps/job_1/",
            timeout=3.0,
            data={"status": "finished", "result": "passed", "node": "host"},
        )

    def test_command_status(self, client, session):
        client.update_command_status("cmd_1", CommandStatusUpdate(Status.FINISHED, return_code=0))

        args, kwargs = session.request.call_args
        assert args == ("POST", "http://server/api/0/commands/cmd_1/")
        assert kwargs["data"] == {"status": "finished", "return_code": "0"}

    def test_append_log(self, client, session):
        client.append_log(LogAppend(b"hello world"))

        args, kwargs = session.request.call_args
        assert args[1] == "http://server/api/0/jobsteps/job_1/logappend/"
        assert kwargs["data"] == {"text": b"hello world", "source": "console"}

    def test_upload_artifact_sends_file(self, client, session, temp_dir):
        artifact = temp_dir / "junit.xml"
        artifact.write_bytes(b"<testsuite/>")
        sent = {}

        def capture(method, url, **kwargs):
            name, handle, content_type = kwargs["files"]["file"]
            sent.update(url=url, data=kwargs["data"], name=name, body=handle.read(), content_type=content_type)
            return make_response()

        session.request.side_effect = capture

        client.upload_artifact(ArtifactUpload("junit.xml", artifact))

        assert sent["url"] == "http://server/api/0/jobsteps/job_1/artifacts/"
        assert sent["data"] == {"name": "junit.xml"}
        assert sent["name"] == "junit.xml"
        assert sent["body"] == b"<testsuite/>"

    def test_upload_missing_file_raises_os_error(self, client, temp_dir):
        with pytest.raises(OSError):
            client.upload_artifact(ArtifactUpload("gone.xml", Path(temp_dir / "gone.xml")))

    def test_heartbeat_parses_state(self, client, session):
        session.request.return_value = make_response(
            payload={"id": "job_1", "status": {"id": "finished"}, "result": {"id": "aborted"}}
        )

        state = client.heartbeat()

        assert session.request.call_args[0] == ("POST", "http://server/api/0/jobsteps/job_1/heartbeat/")
        assert state.status == "finished"
        assert state.should_stop

    def test_fetch_jobstep_uses_get(self, client, session, sample_jobstep_data):
        session.request.return_value = make_response(payload=sample_jobstep_data)

        state = client.fetch_jobstep()

        assert session.request.call_args[0] == ("GET", "http://server/api/0/jobsteps/job_1/")
        assert state.raw == sample_jobstep_data

    def test_invalid_json_raises_reporting_error(self, client, session):
        session.request.return_value = make_response(payload=None)

        with pytest.raises(ReportingError):
            client.heartbeat()


@pytest.mark.unit
class TestRetries:
    """Retry policy for failed calls."""

    def test_connection_error_retried_then_succeeds(self, client, session):
        session.request.side_effect = [requests.ConnectionError("refused"), make_response()]

        client.append_log(LogAppend(b"x"))

        assert session.request.call_count == 2

    def test_server_error_retried(self, client, session):
        session.request.side_effect = [make_response(503), make_response(502), make_response()]

        client.append_log(LogAppend(b"x"))

        assert session.request.call_count == 3

    def test_exhausted_retries_raise_transport_error(self, client, session):
        session.request.side_effect = requests.Timeout("slow")

        with pytest.raises(ReportingTransportError) as exc_info:
            client.append_log(LogAppend(b"x"))

        assert session.request.call_count == 3
        assert "after 3 attempt(s)" in str(exc_info.value)

    def test_exhausted_server_errors_raise_transport_error(self, client, session):
        session.request.return_value = make_response(500, text="oops")

        with pytest.raises(ReportingTransportError):
            client.update_command_status("cmd_1", CommandStatusUpdate(Status.IN_PROGRESS))

        assert session.request.call_count == 3

    def test_client_error_not_retried(self, client, session):
        session.request.return_value = make_response(404, text="no such job-step")

        with pytest.raises(ReportingHTTPError) as exc_info:
            client.update_jobstep_status(JobStepStatusUpdate(Status.IN_PROGRESS, node="host"))

        assert session.request.call_count == 1
        assert exc_info.value.status_code == 404
        assert not exc_info.value.retryable


@pytest.mark.unit
class TestLifecycle:
    """Session ownership."""

    def test_context_manager_closes_session(self, session):
        with ReportingClient("http://server", "job_1", session=session) as client:
            assert client.jobstep_id == "job_1"

        session.close.assert_called_once()

    def test_clone_has_own_session(self, client, session):
        clone = client.clone()

        assert clone is not client
        assert clone.jobstep_id == "job_1"
        assert clone.config is client.config
        assert clone._session is not session
        clone.close()

    def test_clone_with_own_limits(self, client):
        limits = ServerConfig(timeout_seconds=0.5, max_attempts=1, retry_delay_seconds=0.0)
        clone = client.clone(limits)

        assert clone.config is limits
        assert client.config is not limits
        clone.close()
