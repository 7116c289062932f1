"""Tests for the report API client."""

import json

import httpx
import pytest

from scalecheck.client import AGENT_VERSION, ApiError, ScaleCheckClient
from scalecheck.models import AnalysisReport


def make_client(handler, api_key="sc_test"):
    """Create a client whose requests are answered by handler."""
    return ScaleCheckClient(
        "https://api.example.test/",
        api_key=api_key,
        transport=httpx.MockTransport(handler),
    )


def test_send_report_payload():
    """Test the report is posted with agent metadata and a bearer key."""
    captured = {}

    def handler(request):
        captured["url"] = str(request.url)
        captured["auth"] = request.headers["Authorization"]
        captured["body"] = json.loads(request.content)
        return httpx.Response(201, json={"ok": True})

    make_client(handler).send_report(
        AnalysisReport(project_id="proj_1", language="Go", complexity_score=72)
    )

    assert captured["url"] == "https://api.example.test/v1/analysis"
    assert captured["auth"] == "Bearer sc_test"
    body = captured["body"]
    assert body["project_id"] == "proj_1"
    assert body["complexity_score"] == 72
    assert body["agent_version"] == AGENT_VERSION
    assert body["platform"] == "cli"
    assert "resource_usage" in body


def test_send_report_error_status():
    """Test a non-2xx response raises ApiError with the status."""

    def handler(request):
        return httpx.Response(403, text="quota exceeded")

    with pytest.raises(ApiError) as exc_info:
        make_client(handler).send_report(AnalysisReport())

    assert exc_info.value.status_code == 403
    assert "quota exceeded" in str(exc_info.value)


def test_send_report_transport_error():
    """Test network failures are wrapped in ApiError."""

    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ApiError) as exc_info:
        make_client(handler).send_report(AnalysisReport())

    assert exc_info.value.status_code is None


def test_requires_api_key():
    """Test authenticated calls fail without a key."""
    client = make_client(lambda request: httpx.Response(200), api_key=None)

    with pytest.raises(ApiError, match="No API key"):
        client.get_subscription()


def test_get_subscription():
    """Test subscription parsing."""

    def handler(request):
        assert request.url.path == "/v1/subscription"
        return httpx.Response(
            200,
            json={
                "tier": "trial",
                "status": "active",
                "analyses_used": 1,
                "analyses_limit": 1,
                "is_trialing": True,
                "days_remaining": 3,
            },
        )

    subscription = make_client(handler).get_subscription()

    assert subscription.tier == "trial"
    assert subscription.limit_reached
    assert subscription.days_remaining == 3


def test_get_subscription_bad_json():
    """Test undecodable bodies raise ApiError."""
    client = make_client(lambda request: httpx.Response(200, text="<html>"))

    with pytest.raises(ApiError, match="decode"):
        client.get_subscription()


def test_validate_api_key_rejected():
    """Test 401 means an invalid key."""
    client = make_client(lambda request: httpx.Response(401))

    with pytest.raises(ApiError, match="Invalid API key"):
        client.validate_api_key("sc_bad")


def test_validate_api_key_uses_given_key():
    """Test the key under validation is the one sent."""

    def handler(request):
        assert request.headers["Authorization"] == "Bearer sc_other"
        return httpx.Response(200)

    make_client(handler, api_key=None).validate_api_key("sc_other")


def test_get_project_not_found():
    """Test 404 means the project does not exist."""
    client = make_client(lambda request: httpx.Response(404))

    with pytest.raises(ApiError, match="Project not found"):
        client.get_project("proj_missing")


def test_get_project():
    """Test project parsing."""

    def handler(request):
        assert request.url.path == "/v1/projects/proj_1"
        return httpx.Response(200, json={"id": "proj_1", "name": "shop"})

    project = make_client(handler).get_project("proj_1")

    assert project.id == "proj_1"
    assert project.name == "shop"


def test_start_trial_without_key():
    """Test trial signup needs no credential."""

    def handler(request):
        assert "Authorization" not in request.headers
        assert json.loads(request.content)["email"] == "dev@example.com"
        return httpx.Response(
            201, json={"api_key": "sc_new", "project_id": "proj_new"}
        )

    trial = make_client(handler, api_key=None).start_trial("dev@example.com", "Dev")

    assert trial.api_key == "sc_new"
    assert trial.project_id == "proj_new"


def test_start_trial_failure():
    """Test signup failures raise ApiError."""
    client = make_client(lambda request: httpx.Response(409, text="exists"))

    with pytest.raises(ApiError) as exc_info:
        client.start_trial("dev@example.com", "Dev")

    assert exc_info.value.status_code == 409
