from typing import Dict, Optional
from urllib.parse import quote

from gentrack.core.exceptions import UpstreamException
from gentrack.core.interfaces.http_client import HttpClientPort
from gentrack.core.models.callback import CallbackResult, CallbackStep
from gentrack.core.settings import logger


class ChatGptBuilderClient:
    """MessagingClientPort implementation for the ChatGPT Builder contacts API.

    record_result: POST <base>/contacts/<contact>/custom_fields/<field_id>, form body value=<url>
    trigger_flow:  POST <base>/contacts/<contact>/send/<flow_id>

    Both calls authenticate with the X-ACCESS-TOKEN header. Without a configured
    token the calls are not attempted and come back as failed results.
    """

    def __init__(
        self,
        http_client: HttpClientPort,
        base_url: str,
        access_token: Optional[str],
        field_id: str,
        flow_id: str,
        timeout: float | None = None,
    ) -> None:
        self._http = http_client
        self._base_url = str(base_url).rstrip("/")
        self._token = access_token
        self._field_id = field_id
        self._flow_id = flow_id
        self._timeout = timeout

    def _contact_url(self, contact_id: str, suffix: str) -> str:
        return f"{self._base_url}/contacts/{quote(contact_id, safe='')}/{suffix}"

    def _headers(self) -> Dict[str, str]:
        return {"X-ACCESS-TOKEN": self._token or "", "Accept": "application/json"}

    async def record_result(self, contact_id: str, value: str) -> CallbackResult:
        url = self._contact_url(contact_id, f"custom_fields/{self._field_id}")
        return await self._post(CallbackStep.record_result, url, data={"value": value})

    async def trigger_flow(self, contact_id: str) -> CallbackResult:
        url = self._contact_url(contact_id, f"send/{self._flow_id}")
        return await self._post(CallbackStep.trigger_flow, url)

    async def _post(
        self, step: CallbackStep, url: str, data: Dict[str, str] | None = None
    ) -> CallbackResult:
        if not self._token:
            logger.error(f"[callback:{step}] no access token configured; skipping url={url}")
            return CallbackResult(step=step, ok=False, detail="access token not configured")

        try:
            resp = await self._http.post(
                url, data=data, headers=self._headers(), timeout=self._timeout
            )
        except UpstreamException as exc:
            return CallbackResult(
                step=step, ok=False, status=exc.response.status, detail=exc.response.detail
            )

        status = resp.get("status")
        ok = isinstance(status, int) and 200 <= status < 300
        detail = None
        if not ok:
            body = resp.get("body")
            detail = str(body)[:500] if body else "Unknown error"
        return CallbackResult(step=step, ok=ok, status=status, detail=detail)
