"""HTTP client for the onboarding API.

The sequencer depends only on the OnboardingAPI protocol, so tests can pass
an AsyncMock and other hosts can route calls however they like.
HTTPOnboardingClient is the real implementation over httpx.

Usage:
    from techformpro.client.api_client import HTTPOnboardingClient

    api = HTTPOnboardingClient()
    record = await api.fetch_state(SessionSnapshot(current_user=user, session_token=token))
"""

from typing import Any, Protocol

import httpx
import structlog
from pydantic import ValidationError

from techformpro.client.session import SessionSnapshot
from techformpro.core.config import settings
from techformpro.schemas.onboarding import OnboardingRecordResponse
from techformpro.services.onboarding_steps import OnboardingStep

logger = structlog.get_logger()


class OnboardingClientError(Exception):
    """A call to the onboarding API failed.

    Attributes:
        status_code: HTTP status, or None when no response was received.
        code: Machine-readable code from the error envelope, or a local one
            (NETWORK_ERROR, INVALID_RESPONSE).
        message: Human-readable message.
    """

    def __init__(self, status_code: int | None, code: str, message: str) -> None:
        self.status_code = status_code
        self.code = code
        self.message = message
        super().__init__(message)


class OnboardingAPI(Protocol):
    """Interface the sequencer uses to reach the onboarding store.

    Every call names the session it is made for, so a request always carries
    the credentials of the user whose record it reads or changes.
    """

    async def fetch_state(
        self, session: SessionSnapshot
    ) -> OnboardingRecordResponse | None:
        """Return the user's record, or None if onboarding never started."""
        ...

    async def start(self, session: SessionSnapshot) -> OnboardingRecordResponse:
        """Create the record, or return the existing one."""
        ...

    async def complete_step(
        self, session: SessionSnapshot, step: OnboardingStep
    ) -> OnboardingRecordResponse:
        """Complete ``step`` and advance past it."""
        ...

    async def skip_step(
        self, session: SessionSnapshot, step: OnboardingStep
    ) -> OnboardingRecordResponse:
        """Skip ``step`` and advance past it."""
        ...

    async def go_to_step(
        self, session: SessionSnapshot, step: OnboardingStep
    ) -> OnboardingRecordResponse:
        """Move the current step without changing completion."""
        ...

    async def complete_all(self, session: SessionSnapshot) -> OnboardingRecordResponse:
        """Complete every step and end onboarding."""
        ...


class HTTPOnboardingClient:
    """OnboardingAPI over HTTP.

    Opens a short-lived httpx.AsyncClient per call and sends the session's
    token as the auth cookie. The client holds no credentials of its own, so
    one instance serves any number of users.

    Args:
        base_url: API base URL. Defaults to settings.onboarding_api_url.
        timeout: Per-request timeout in seconds. Defaults to
            settings.onboarding_request_timeout.
        transport: Optional httpx transport (ASGITransport, MockTransport).
    """

    def __init__(
        self,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or settings.onboarding_api_url).rstrip("/")
        self._timeout = timeout if timeout is not None else settings.onboarding_request_timeout
        self._transport = transport

    async def fetch_state(
        self, session: SessionSnapshot
    ) -> OnboardingRecordResponse | None:
        return await self._request(session, "GET", "/onboarding")

    async def start(self, session: SessionSnapshot) -> OnboardingRecordResponse:
        return await self._request_record(session, "POST", "/onboarding/start")

    async def complete_step(
        self, session: SessionSnapshot, step: OnboardingStep
    ) -> OnboardingRecordResponse:
        return await self._request_record(
            session, "POST", "/onboarding/complete-step", {"step": step.value}
        )

    async def skip_step(
        self, session: SessionSnapshot, step: OnboardingStep
    ) -> OnboardingRecordResponse:
        return await self._request_record(
            session, "POST", "/onboarding/skip-step", {"step": step.value}
        )

    async def go_to_step(
        self, session: SessionSnapshot, step: OnboardingStep
    ) -> OnboardingRecordResponse:
        return await self._request_record(
            session, "POST", "/onboarding/step", {"step": step.value}
        )

    async def complete_all(self, session: SessionSnapshot) -> OnboardingRecordResponse:
        return await self._request_record(session, "POST", "/onboarding/complete")

    async def _request_record(
        self,
        session: SessionSnapshot,
        method: str,
        path: str,
        body: dict[str, Any] | None = None,
    ) -> OnboardingRecordResponse:
        record = await self._request(session, method, path, body)
        if record is None:
            raise OnboardingClientError(
                200, "INVALID_RESPONSE", f"Empty response from {method} {path}"
            )
        return record

    async def _request(
        self,
        session: SessionSnapshot,
        method: str,
        path: str,
        body: dict[str, Any] | None = None,
    ) -> OnboardingRecordResponse | None:
        """Send one request and parse the record it returns.

        Raises:
            OnboardingClientError: On transport failure, a non-2xx status, or
                a body that is not a valid onboarding record.
        """
        cookies = {}
        if session.session_token:
            cookies[settings.auth_cookie_name] = session.session_token

        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                cookies=cookies,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                resp = await client.request(method, path, json=body)
        except httpx.HTTPError as exc:
            logger.warning(
                "Onboarding API unreachable", method=method, path=path, error=str(exc)
            )
            raise OnboardingClientError(None, "NETWORK_ERROR", str(exc)) from exc

        if resp.is_error:
            raise _error_from_response(resp)

        if not resp.content:
            return None
        try:
            payload = resp.json()
            if payload is None:
                return None
            return OnboardingRecordResponse.model_validate(payload)
        except (ValueError, ValidationError) as exc:
            logger.warning(
                "Onboarding API returned an invalid record", method=method, path=path
            )
            raise OnboardingClientError(
                resp.status_code, "INVALID_RESPONSE", "Invalid onboarding record"
            ) from exc


def _error_from_response(resp: httpx.Response) -> OnboardingClientError:
    """Build an error from the API's error envelope.

    Handles both {"error": {...}} from the API error handlers and
    {"detail": {...}} from auth dependencies.
    """
    code = "HTTP_ERROR"
    message = f"Onboarding API returned {resp.status_code}"
    try:
        payload = resp.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        error = payload.get("error") or payload.get("detail")
        if isinstance(error, dict):
            code = str(error.get("code", code))
            message = str(error.get("message", message))
        elif isinstance(error, str):
            message = error

    return OnboardingClientError(resp.status_code, code, message)
