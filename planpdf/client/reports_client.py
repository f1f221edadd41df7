"""
Async HTTP client for the reports API.
"""
from functools import partial

import httpx

from planpdf.client.poller import ReportStatusPoller, ExponentialBackoff, FixedInterval
from planpdf.client.session import SessionProvider
from planpdf.schemas.intake import BusinessPlanForm


class ReportsApiError(Exception):
    """The API answered with an error, or could not be reached (status_code None)."""

    def __init__(self, status_code: int | None, message: str):
        super().__init__(f"{status_code}: {message}" if status_code else message)
        self.status_code = status_code
        self.message = message


class ReportsClient:
    """
    Client for starting reports and fetching their status and links.

    Usage:
        client = ReportsClient("https://api.example.com", sessions)
        started = await client.start_report(form)
        outcome = await client.poller(started["reportId"]).start()
    """

    def __init__(
        self,
        base_url: str,
        sessions: SessionProvider,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None
    ):
        self.base_url = base_url.rstrip("/")
        self.sessions = sessions
        self.timeout = timeout
        self.transport = transport

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        session = await self.sessions.get_session()
        if session is None:
            raise ReportsApiError(401, "Not signed in")

        headers = {"Authorization": f"Bearer {session.access_token}"}
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self.transport
            ) as client:
                response = await client.request(method, path, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            raise ReportsApiError(None, f"Request timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise ReportsApiError(None, f"Request failed: {e}") from e

        if not response.is_success:
            try:
                message = response.json().get("error") or response.text
            except ValueError:
                message = response.text
            raise ReportsApiError(response.status_code, str(message))

        return response.json()

    async def start_report(self, form: BusinessPlanForm | dict, report_id: str | None = None) -> dict:
        """Submit the intake form; returns {"reportId", "status"}."""
        form_data = form.to_payload() if isinstance(form, BusinessPlanForm) else form
        body = {"formData": form_data}
        if report_id:
            body["reportId"] = report_id
        return await self._request("POST", "/api/reports", json=body)

    async def get_status(self, report_id: str) -> dict:
        return await self._request("GET", f"/api/reports/{report_id}")

    async def get_access(self, report_id: str, exp: int = 300) -> dict:
        """Signed link to the full report or its preview, by plan tier."""
        return await self._request("GET", f"/api/reports/{report_id}/access", params={"exp": exp})

    def poller(
        self,
        report_id: str,
        policy: FixedInterval | ExponentialBackoff | None = None
    ) -> ReportStatusPoller:
        return ReportStatusPoller(report_id, partial(self.get_status, report_id), policy)
