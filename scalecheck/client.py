"""HTTP client for the report and subscription API."""

import logging
from typing import Any

import httpx

from scalecheck.models import AnalysisReport, ProjectInfo, SubscriptionInfo, TrialInfo

AGENT_VERSION = "1.0.0"
PLATFORM = "cli"
USER_AGENT = f"ScaleCheck-Agent/{AGENT_VERSION}"
DEFAULT_TIMEOUT = 30.0


class ApiError(RuntimeError):
    """A request to the report API failed.

    Attributes:
        status_code: HTTP status (None for transport failures)
        body: Response body, if any
    """

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class ScaleCheckClient:
    """Talks to the report API with a bearer credential."""

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize client.

        Args:
            base_url: API base URL (e.g. https://api.scalecheck.dev)
            api_key: Bearer credential; required for authenticated calls
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used to stub the network)
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    def _headers(self, api_key: str | None = None) -> dict[str, str]:
        key = api_key or self.api_key
        if not key:
            raise ApiError("No API key found. Run 'scalecheck auth login' first")
        return {
            "Authorization": f"Bearer {key}",
            "User-Agent": USER_AGENT,
            "Content-Type": "application/json",
        }

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self.base_url}{path}"
        logging.debug("%s %s", method, url)
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                return client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise ApiError(f"Request to {url} failed: {e}")

    def send_report(self, report: AnalysisReport) -> None:
        """
        Submit a finished report.

        Args:
            report: Normalized report to send

        Raises:
            ApiError: On any non-2xx response or transport failure
        """
        payload = report.model_dump(mode="json")
        payload["agent_version"] = AGENT_VERSION
        payload["platform"] = PLATFORM

        response = self._request(
            "POST", "/v1/analysis", json=payload, headers=self._headers()
        )
        if not response.is_success:
            raise ApiError(
                f"API request failed with status {response.status_code}: "
                f"{response.text}",
                status_code=response.status_code,
                body=response.text,
            )

    def get_subscription(self) -> SubscriptionInfo:
        """Fetch the subscription/quota record for the current key."""
        response = self._request("GET", "/v1/subscription", headers=self._headers())
        if response.status_code != 200:
            raise ApiError(
                f"Subscription lookup failed with status {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )
        return SubscriptionInfo.model_validate(self._json(response))

    def validate_api_key(self, api_key: str) -> None:
        """
        Check an API key with the server.

        Raises:
            ApiError: If the key is rejected or validation fails
        """
        response = self._request(
            "GET", "/v1/auth/validate", headers=self._headers(api_key)
        )
        if response.status_code == 401:
            raise ApiError("Invalid API key", status_code=401, body=response.text)
        if response.status_code != 200:
            raise ApiError(
                f"Validation failed with status {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )

    def get_project(self, project_id: str) -> ProjectInfo:
        """Fetch a project record."""
        response = self._request(
            "GET", f"/v1/projects/{project_id}", headers=self._headers()
        )
        if response.status_code == 404:
            raise ApiError("Project not found", status_code=404, body=response.text)
        if response.status_code != 200:
            raise ApiError(
                f"Request failed with status {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )
        return ProjectInfo.model_validate(self._json(response))

    def start_trial(self, email: str, name: str, company: str = "") -> TrialInfo:
        """Create a trial account; no API key is needed."""
        response = self._request(
            "POST",
            "/v1/auth/trial",
            json={"email": email, "name": name, "company": company},
            headers={"User-Agent": USER_AGENT},
        )
        if response.status_code != 201:
            raise ApiError(
                f"Signup failed with status {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )
        return TrialInfo.model_validate(self._json(response))

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(
                f"Failed to decode response: {e}",
                status_code=response.status_code,
                body=response.text,
            )
