from typing import Dict
from urllib.parse import quote

from gentrack.core.exceptions import MissingCredentialsError, UpstreamException
from gentrack.core.interfaces.http_client import HttpClientPort
from gentrack.core.managers.status_normalization import normalize_status_payload
from gentrack.core.models.outcome import ProbeOutcome, StillProcessing
from gentrack.core.settings import logger


class HiggsfieldStatusProber:
    """StatusProberPort implementation for the Higgsfield request status endpoint.

    GET <base>/requests/<id>/status. `probe` folds any transport or HTTP problem
    into StillProcessing and leaves the give-up decision to the scheduler's
    attempt ceiling; `fetch_status` raises instead, for the live status route.
    """

    def __init__(
        self,
        http_client: HttpClientPort,
        base_url: str,
        auth_headers: Dict[str, str],
        timeout: float | None = None,
    ) -> None:
        self._http = http_client
        self._base_url = str(base_url).rstrip("/")
        self._auth_headers = dict(auth_headers)
        self._headers = {"Accept": "application/json", **auth_headers}
        self._timeout = timeout

    def has_credentials(self) -> bool:
        return "Authorization" in self._auth_headers

    def status_url(self, job_id: str) -> str:
        return f"{self._base_url}/requests/{quote(job_id, safe='')}/status"

    async def fetch_status(self, job_id: str) -> ProbeOutcome:
        if not self.has_credentials():
            raise MissingCredentialsError()
        payload = await self._http.get(
            self.status_url(job_id), timeout=self._timeout, headers=self._headers
        )
        outcome = normalize_status_payload(payload)
        logger.debug(f"[probe:done] job_id={job_id} outcome={outcome.kind}")
        return outcome

    async def probe(self, job_id: str) -> ProbeOutcome:
        try:
            return await self.fetch_status(job_id)
        except UpstreamException as exc:
            logger.warning(
                f"[probe:error] job_id={job_id} status={exc.response.status} title={exc.response.title}"
            )
            return StillProcessing(transient_error=exc.response.detail)
        except Exception as exc:
            logger.error(f"[probe:error] unexpected job_id={job_id} error={exc!r}")
            return StillProcessing(transient_error=str(exc) or type(exc).__name__)
