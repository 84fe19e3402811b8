"""Client for the external leave eligibility service."""

import logging

import httpx

from leaveflow.core.exceptions import ComplianceUnavailableError
from leaveflow.services.workflow.schemas import EligibilityResult

logger = logging.getLogger(__name__)


class ComplianceClient:
    """Asks the leave-balance service whether a request is allowed.

    With no service URL configured every request is treated as eligible.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._base_url = base_url.rstrip("/") if base_url else None
        self._timeout = timeout
        self._http_client = http_client

    async def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    async def is_eligible(
        self, staff_id: str, leave_type: str, day_count: int
    ) -> EligibilityResult:
        """Check eligibility for a leave request.

        Raises:
            ComplianceUnavailableError: If the service cannot be reached or
                returns an error status.
        """
        if not self._base_url:
            logger.debug(f"No compliance service configured, {staff_id} treated as eligible")
            return EligibilityResult(eligible=True)

        try:
            client = await self._get_http_client()
            response = await client.post(
                f"{self._base_url}/eligibility",
                json={"staff_id": staff_id, "leave_type": leave_type, "day_count": day_count},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Eligibility check for {staff_id} failed: {e}")
            raise ComplianceUnavailableError(str(e)) from e

        result = EligibilityResult.model_validate(response.json())
        if not result.eligible:
            logger.info(
                f"{staff_id} not eligible for {day_count} days of {leave_type}",
                extra={"reasons": result.reasons},
            )
        return result

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
