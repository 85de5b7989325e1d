# gentrack/adapters/aiohttp_client_adapter.py
import asyncio
import aiohttp
from typing import Any, Dict, Optional

from gentrack.core.interfaces.http_client import HttpClientPort
from gentrack.core.exceptions import UpstreamException
from gentrack.core.models.problem import ProblemDetail
from gentrack.core.settings import logger


class AioHttpClientAdapter(HttpClientPort):
    def __init__(self, default_timeout: float = 10.0):
        self._session: Optional[aiohttp.ClientSession] = None
        # Per-field defaults so callers never build ClientTimeout objects themselves.
        self._default_total: float = default_timeout
        self._default_sock_read: float = default_timeout
        self._default_sock_connect: float = 5.0
        self._default_client_timeout = aiohttp.ClientTimeout(
            total=self._default_total,
            sock_read=self._default_sock_read,
            sock_connect=self._default_sock_connect,
        )

    async def __aenter__(self):
        """Async context manager entry"""
        self._session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()
        return False

    def _client_timeout(self, timeout: float | None) -> aiohttp.ClientTimeout:
        if timeout is None:
            return self._default_client_timeout
        # Keep adapter-level sock_connect but apply provided total
        return aiohttp.ClientTimeout(
            total=timeout,
            sock_read=timeout,
            sock_connect=self._default_sock_connect,
        )

    async def get(
        self,
        url: str,
        timeout: float | None = None,
        headers: Dict[str, str] | None = None,
    ) -> Any:
        if self._session is None:
            raise RuntimeError("HTTP client not initialized. Use 'async with' context manager.")

        try:
            async with self._session.get(
                url, timeout=self._client_timeout(timeout), headers=headers
            ) as response:
                response.raise_for_status()
                try:
                    response_data = await response.json(content_type=None)
                except (aiohttp.ContentTypeError, ValueError):
                    response_text = await response.text()
                    logger.error(
                        "Invalid JSON response from remote service. URL: %s, Status: %s, Content: %s",
                        url,
                        response.status,
                        response_text[:500],
                    )
                    raise UpstreamException(
                        ProblemDetail(
                            title="Invalid Response Content",
                            status=502,
                            detail=(
                                "The response from the remote service was not valid JSON"
                                f": '{response_text[:100]}'"
                            ),
                        )
                    )

                return response_data

        except UpstreamException:
            raise

        except asyncio.TimeoutError:
            logger.error("Timeout when requesting remote service. URL: %s", url)
            raise UpstreamException(
                ProblemDetail(
                    title="Upstream Timeout",
                    status=504,
                    detail="The request to the remote service timed out.",
                )
            )

        except aiohttp.ClientResponseError as client_response_error:
            if client_response_error.status == 401:
                logger.warning(
                    "Authentication failed when requesting remote service. URL: %s, Error: %s",
                    url,
                    str(client_response_error),
                )
                raise UpstreamException(
                    ProblemDetail(
                        title="Authentication Failed",
                        status=401,
                        detail="Authentication with the remote service failed.",
                    )
                )

            logger.error(
                "HTTP error when requesting remote service. URL: %s, Status: %s, Error: %s",
                url,
                client_response_error.status,
                str(client_response_error),
            )
            raise UpstreamException(
                ProblemDetail(
                    title="Upstream HTTP Error",
                    status=client_response_error.status,
                    detail=f"The remote service returned an HTTP error: {client_response_error.status}",
                )
            )

        except aiohttp.ClientError as client_error:
            logger.error(
                "Connection error when requesting remote service. URL: %s, Error: %s",
                url,
                str(client_error),
            )
            raise UpstreamException(
                ProblemDetail(
                    title="Upstream Connection Error",
                    status=502,
                    detail="There was a connection error with the remote service.",
                )
            )

    async def close(self) -> None:
        """Close the session"""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def post(
        self,
        url: str,
        json: Dict[str, Any] | None = None,
        timeout: float | None = None,
        headers: Dict[str, str] | None = None,
        data: Dict[str, str] | None = None,
    ) -> Dict[str, Any]:
        if self._session is None:
            raise RuntimeError("HTTP client not initialized. Use 'async with' context manager.")

        try:
            async with self._session.post(
                url,
                json=json,
                data=data,
                timeout=self._client_timeout(timeout),
                headers=headers,
            ) as response:
                # Parse JSON when possible but hand back status and headers too;
                # no raise_for_status so the caller can inspect error bodies.
                try:
                    body = await response.json()
                except (aiohttp.ContentTypeError, ValueError):
                    body = await response.text()

                return {
                    "status": response.status,
                    "headers": dict(response.headers),
                    "body": body,
                }

        except asyncio.TimeoutError:
            logger.error("Timeout when POSTing to remote service. URL: %s", url)
            raise UpstreamException(
                ProblemDetail(
                    title="Upstream Timeout",
                    status=504,
                    detail="The request to the remote service timed out.",
                )
            )
        except aiohttp.ClientError as client_err:
            logger.error("Connection error when POSTing to remote service. URL: %s, Error: %s", url, str(client_err))
            raise UpstreamException(
                ProblemDetail(
                    title="Upstream Connection Error",
                    status=502,
                    detail="There was a connection error with the remote service.",
                )
            )
