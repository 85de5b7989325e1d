"""GenerationManager: submits generation requests and hands them to the tracker.

Responsibilities:
1. Refuse to submit when no provider credentials are configured.
2. POST the normalized request to the provider model endpoint, retrying
   transient failures (connection errors, timeouts, 502/503/504).
3. Surface provider refusals with the provider's status and message.
4. Register the provider-issued request id with the JobTracker when the caller
   supplied a contact to notify.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from gentrack.core.exceptions import (
    GenerationSubmitError,
    MissingCredentialsError,
    UpstreamException,
)
from gentrack.core.interfaces.http_client import HttpClientPort
from gentrack.core.interfaces.retry import RetryPort
from gentrack.core.managers.job_tracker import JobTracker
from gentrack.core.models.generation_request import GenerationRequest
from gentrack.core.models.job import OwnerRef
from gentrack.core.models.problem import ProblemDetail
from gentrack.core.settings import logger

TRANSIENT_STATUSES = frozenset({502, 503, 504})


class TransientUpstreamError(UpstreamException):
    """Wrapper for upstream errors that should be retried.

    Distinguishes retryable failures (502, 503, 504, connection problems)
    from client errors (4xx) in retry logic.
    """

    pass


class GenerationManager:
    def __init__(
        self,
        http_client: HttpClientPort,
        tracker: JobTracker,
        base_url: str,
        auth_headers: Dict[str, str],
        default_model_id: str,
        retry_port: Optional[RetryPort] = None,
        timeout: float | None = None,
    ) -> None:
        self._http = http_client
        self._tracker = tracker
        self._base_url = str(base_url).rstrip("/")
        self._auth_headers = dict(auth_headers)
        self._default_model_id = default_model_id
        self._retry = retry_port
        self._timeout = timeout

    def has_credentials(self) -> bool:
        return "Authorization" in self._auth_headers

    async def submit(self, request: GenerationRequest) -> Dict[str, Any]:
        if not self.has_credentials():
            raise MissingCredentialsError()

        model_id = request.model_id or self._default_model_id
        url = f"{self._base_url}/{model_id.lstrip('/')}"
        skipped = request.skipped_image_count()
        if skipped:
            logger.info(
                f"[generate:submit] skipped {skipped} data URL(s); provider requires hosted image URLs"
            )
        logger.info(
            f"[generate:submit] model={model_id} prompt_length={len(request.prompt)} "
            f"images={len(request.hosted_image_urls())} resolution={request.resolution} aspect={request.aspect}"
        )

        resp = await self._safe_post(url, request.as_provider_payload())
        status = resp.get("status") or 0
        body = resp.get("body")
        note = (
            f"Skipped {skipped} local image(s). Higgsfield requires hosted image URLs (http/https), not base64 data."
            if skipped
            else None
        )

        if status >= 400:
            raise GenerationSubmitError(
                self._error_message(body) or "Failed to queue generation",
                upstream_status=status,
                upstream_body=body,
            )

        request_id = self._request_id(body)
        if not request_id:
            raise GenerationSubmitError(
                "Missing request_id in Higgsfield response",
                upstream_status=502,
                upstream_body=body,
            )

        tracked = False
        if request.contact_id:
            await self._tracker.register(
                request_id, OwnerRef(contact_id=request.contact_id, user_id=request.user_id)
            )
            tracked = True
        else:
            logger.info(f"[generate:submit] no contact id; request not tracked job_id={request_id}")

        result: Dict[str, Any] = {
            "requestId": request_id,
            "status": "queued",
            "message": "Queued. Use /api/jobs or /api/status to refresh.",
            "tracked": tracked,
        }
        if note:
            result["note"] = note
        return result

    # ----------------- Helper methods -----------------
    def _is_transient_error(self, exc: Exception) -> bool:
        if isinstance(exc, UpstreamException):
            return exc.response.status in TRANSIENT_STATUSES
        return True

    async def _safe_post(self, url: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            **self._auth_headers,
        }

        async def do_post_with_error_classification():
            try:
                resp = await self._http.post(url, json=payload, headers=headers, timeout=self._timeout)
            except UpstreamException as exc:
                if self._is_transient_error(exc):
                    logger.debug(f"[generate:submit] transient error, will retry: status={exc.response.status}")
                    raise TransientUpstreamError(exc.response) from exc
                raise
            if resp.get("status") in TRANSIENT_STATUSES:
                logger.debug(f"[generate:submit] transient upstream status={resp.get('status')}, will retry")
                raise TransientUpstreamError(
                    _problem_from_status(resp.get("status"), resp.get("body"))
                )
            return resp

        try:
            if self._retry:
                return await self._retry.execute(
                    do_post_with_error_classification,
                    retry_on=(TransientUpstreamError,),
                )
            return await do_post_with_error_classification()
        except UpstreamException as exc:
            logger.error(
                f"[generate:submit] upstream failure status={exc.response.status} title={exc.response.title}"
            )
            raise GenerationSubmitError(
                exc.response.detail,
                upstream_status=exc.response.status,
            ) from exc

    def _request_id(self, body: Any) -> Optional[str]:
        if not isinstance(body, dict):
            return None
        request_id = body.get("request_id") or body.get("requestId")
        return str(request_id) if request_id else None

    def _error_message(self, body: Any) -> Optional[str]:
        if isinstance(body, dict):
            for key in ("error", "message", "detail"):
                value = body.get(key)
                if value:
                    return value if isinstance(value, str) else str(value)
            return None
        if isinstance(body, str) and body:
            return body[:500]
        return None


def _problem_from_status(status: Any, body: Any) -> ProblemDetail:
    return ProblemDetail(
        title="Upstream Unavailable",
        status=int(status),
        detail=str(body)[:200] if body else f"The remote service returned {status}",
    )
