"""Tests for client.py: AuditClient SDK with resilience."""

from unittest.mock import MagicMock, patch

import httpx

from tala_audit.client import (
    AuditClient,
    ClientAppendResult,
    ClientAuditTrail,
    ClientTamperReport,
)


def _mock_response(data: dict, status_code: int = 200) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = data
    return resp


class TestAuditClientInit:
    def test_defaults(self):
        client = AuditClient()
        assert client.server_url == "http://localhost:8080"
        assert client.api_key is None
        assert client.max_retries == 3
        client.close()

    def test_custom_params(self):
        client = AuditClient(
            server_url="http://audit:9090/",
            api_key="admin-key",
            timeout=10,
            max_retries=5,
        )
        assert client.server_url == "http://audit:9090"
        assert client.api_key == "admin-key"
        assert client.max_retries == 5
        client.close()

    def test_context_manager_closes(self):
        with AuditClient() as client:
            client._http = MagicMock()
        client._http.close.assert_called_once()


class TestClientAppend:
    def test_success(self):
        client = AuditClient(api_key="admin-key")
        client._http = MagicMock()
        client._http.post.return_value = _mock_response({"id": "log-1"}, 201)

        result = client.append(
            "t1", "u1", "JournalEntry", "JE-1", "Posted",
            changes_after={"status": "posted"},
        )

        assert result == ClientAppendResult(success=True, id="log-1")
        args, kwargs = client._http.post.call_args
        assert args[0] == "/audit-logs/t1"
        assert kwargs["json"] == {
            "userId": "u1",
            "entityType": "JournalEntry",
            "entityId": "JE-1",
            "action": "Posted",
            "changesAfter": {"status": "posted"},
        }
        assert kwargs["headers"] == {"X-Tala-Api-Key": "admin-key"}

    def test_validation_error_not_retried(self):
        client = AuditClient(max_retries=3)
        client._http = MagicMock()
        client._http.post.return_value = _mock_response(
            {"error": "InvalidAuditEventError", "code": "INVALID_AUDIT_EVENT", "detail": "bad"},
            422,
        )
        result = client.append("t1", "u1", "JournalEntry", "JE-1", "Posted")
        assert result.success is False
        assert result.code == "INVALID_AUDIT_EVENT"
        assert client._http.post.call_count == 1

    def test_conflict_code_surfaced(self):
        client = AuditClient()
        client._http = MagicMock()
        client._http.post.return_value = _mock_response(
            {"error": "ChainConflictError", "code": "CHAIN_CONFLICT"}, 409,
        )
        result = client.append("t1", "u1", "JournalEntry", "JE-1", "Posted")
        assert result.code == "CHAIN_CONFLICT"

    @patch("tala_audit.client.time.sleep")
    def test_server_error_retried(self, mock_sleep):
        client = AuditClient(max_retries=3)
        client._http = MagicMock()
        client._http.post.side_effect = [
            _mock_response({}, 503),
            _mock_response({"id": "log-2"}, 201),
        ]
        result = client.append("t1", "u1", "JournalEntry", "JE-1", "Posted")
        assert result.success is True
        assert result.id == "log-2"
        assert mock_sleep.call_count == 1

    @patch("tala_audit.client.time.sleep")
    def test_connection_error_exhausts_retries(self, mock_sleep):
        client = AuditClient(max_retries=2)
        client._http = MagicMock()
        client._http.post.side_effect = httpx.ConnectError("refused")
        result = client.append("t1", "u1", "JournalEntry", "JE-1", "Posted")
        assert result.success is False
        assert result.code == "CONNECTION_ERROR"
        assert client._http.post.call_count == 2

    @patch("tala_audit.client.time.sleep")
    def test_read_timeout_not_resent(self, mock_sleep):
        client = AuditClient(max_retries=3)
        client._http = MagicMock()
        client._http.post.side_effect = [
            httpx.ReadTimeout("no response"),
            _mock_response({"id": "log-2"}, 201),
        ]
        result = client.append("t1", "u1", "JournalEntry", "JE-1", "Posted")
        assert result.success is False
        assert result.code == "UNCONFIRMED"
        assert client._http.post.call_count == 1
        mock_sleep.assert_not_called()

    @patch("tala_audit.client.time.sleep")
    def test_dropped_connection_not_resent(self, mock_sleep):
        client = AuditClient(max_retries=3)
        client._http = MagicMock()
        client._http.post.side_effect = httpx.RemoteProtocolError("server disconnected")
        result = client.append("t1", "u1", "JournalEntry", "JE-1", "Posted")
        assert result.code == "UNCONFIRMED"
        assert client._http.post.call_count == 1

    @patch("tala_audit.client.time.sleep")
    def test_gateway_error_not_resent(self, mock_sleep):
        client = AuditClient(max_retries=3)
        client._http = MagicMock()
        client._http.post.return_value = _mock_response({}, 504)
        result = client.append("t1", "u1", "JournalEntry", "JE-1", "Posted")
        assert result.code == "UNCONFIRMED"
        assert client._http.post.call_count == 1

    @patch("tala_audit.client.time.sleep")
    def test_connect_timeout_resent(self, mock_sleep):
        client = AuditClient(max_retries=3)
        client._http = MagicMock()
        client._http.post.side_effect = [
            httpx.ConnectTimeout("connect timed out"),
            _mock_response({"id": "log-1"}, 201),
        ]
        result = client.append("t1", "u1", "JournalEntry", "JE-1", "Created")
        assert result.success is True
        assert client._http.post.call_count == 2


class TestClientReads:
    def test_get_audit_trail(self):
        client = AuditClient()
        client._http = MagicMock()
        client._http.get.return_value = _mock_response({
            "logs": [{"id": "log-1"}],
            "chainValid": False,
            "chainBrokenAt": "2025-03-01T09:00:01.000Z",
        })
        trail = client.get_audit_trail("t1", "JournalEntry", "JE-1")
        assert trail == ClientAuditTrail(
            logs=[{"id": "log-1"}],
            chain_valid=False,
            chain_broken_at="2025-03-01T09:00:01.000Z",
        )
        _, kwargs = client._http.get.call_args
        assert kwargs["params"] == {"entityType": "JournalEntry", "entityId": "JE-1"}

    def test_detect_tampering(self):
        client = AuditClient()
        client._http = MagicMock()
        client._http.get.return_value = _mock_response({
            "tampered": [],
            "securityStatus": "SECURE",
            "affectedRecords": 0,
        })
        report = client.detect_tampering("t1")
        assert report == ClientTamperReport(security_status="SECURE")
        args, _ = client._http.get.call_args
        assert args[0] == "/audit-logs/t1/detect-tampering"

    @patch("tala_audit.client.time.sleep")
    def test_detect_tampering_timeout(self, mock_sleep):
        client = AuditClient(max_retries=2)
        client._http = MagicMock()
        client._http.get.side_effect = httpx.ReadTimeout("slow")
        report = client.detect_tampering("t1")
        assert report.code == "CONNECTION_ERROR"
        assert report.security_status == ""
