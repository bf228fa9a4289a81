"""Async HTTP client for the commit delivery endpoint using httpx."""

from __future__ import annotations

from collections.abc import Sequence

import httpx
from pydantic import ValidationError

from commit_sync.exceptions import DeliveryError, ResponseFormatError
from commit_sync.logging import get_logger
from commit_sync.schemas import BatchResult, CommitRecord, DeliveryPayload, RepositoryInfo

logger = get_logger(__name__)

COMMITS_ENDPOINT = "/api/cli/commits"


class DeliveryClient:
    """Sends commit batches to the achievement service.

    Usage:
        async with DeliveryClient(api_url, token) as client:
            result = await client.send_batch(repository, commits)
            print(result.processed_count)

    A failed request surfaces as DeliveryError so the batch engine can
    retry it. A 2xx whose body cannot be read raises ResponseFormatError
    instead, since the service has already processed that batch.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Service base URL (e.g., https://app.example.com)
            token: Bearer token
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def endpoint(self) -> str:
        """Full URL batches are posted to."""
        return f"{self._base_url}{COMMITS_ENDPOINT}"

    @property
    def _http(self) -> httpx.AsyncClient:
        """Get or create the underlying httpx client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
                headers={
                    "Authorization": f"Bearer {self._token}",
                    "Content-Type": "application/json",
                },
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> DeliveryClient:
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Async context manager exit."""
        await self.close()

    async def send_batch(
        self,
        repository: RepositoryInfo,
        commits: Sequence[CommitRecord],
    ) -> BatchResult:
        """Post one batch of commits.

        Args:
            repository: Repository context sent with the batch
            commits: Commits in submission order

        Returns:
            The service's BatchResult

        Raises:
            DeliveryError: On transport failure or a non-2xx status
            ResponseFormatError: If a 2xx response body cannot be parsed
        """
        payload = DeliveryPayload(repository=repository, commits=list(commits))
        logger.debug("Posting {} commits to {}", len(commits), self.endpoint)

        try:
            response = await self._http.post(self.endpoint, json=payload.to_wire())
        except httpx.HTTPError as e:
            raise DeliveryError(f"Request to {self.endpoint} failed: {e}") from e

        if not response.is_success:
            raise DeliveryError(
                f"API error (status {response.status_code}): {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            return BatchResult.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise ResponseFormatError(
                f"Invalid response from {self.endpoint}: {e}",
                status_code=response.status_code,
                body=response.text,
            ) from e
