"""HTTP surface tests: FastAPI app with fake upstreams and the in-memory tracker."""

import pytest
from fastapi.testclient import TestClient

from gentrack.adapters.higgsfield_status_prober import HiggsfieldStatusProber
from gentrack.adapters.job_store_inmemory import InMemoryJobStore
from gentrack.adapters.web.fastapi import create_app
from gentrack.core.config import JobTrackerConfig
from gentrack.core.exceptions import UpstreamException
from gentrack.core.managers.generation_manager import GenerationManager
from gentrack.core.managers.job_tracker import JobTracker
from gentrack.core.managers.poll_scheduler import PollScheduler
from gentrack.core.models.problem import ProblemDetail

from conftest import RecordingDispatcher, ScriptedProber


class FakeHttpClient:
    def __init__(self, post_responses=None, status_document=None):
        self.post_responses = list(post_responses or [])
        self.status_document = status_document or {"status": "in_progress"}
        self.gets = []
        self.entered = False

    async def __aenter__(self):
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False

    async def get(self, url, timeout=None, headers=None):
        self.gets.append(url)
        if isinstance(self.status_document, Exception):
            raise self.status_document
        return self.status_document

    async def post(self, url, json=None, timeout=None, headers=None, data=None):
        return self.post_responses.pop(0)


def accepted(request_id):
    return {"status": 200, "headers": {}, "body": {"request_id": request_id}}


GENERATE_BODY = {"prompt": "red silk dress", "aspect": "3:4", "contactId": "c-1"}


AUTH = {"Authorization": "Key kid:secret"}


def build(post_responses=None, auth=None, status_document=None):
    http = FakeHttpClient(post_responses, status_document)
    auth_headers = AUTH if auth is None else auth
    live_prober = HiggsfieldStatusProber(http, "https://platform.example", auth_headers)
    prober = ScriptedProber()
    config = JobTrackerConfig(poll_interval=60, max_poll_attempts=3, first_poll_delay=30)
    store = InMemoryJobStore()
    scheduler = PollScheduler(store, prober, RecordingDispatcher(), config)
    tracker = JobTracker(store, scheduler)

    def factory(client):
        return GenerationManager(
            http_client=client,
            tracker=tracker,
            base_url="https://platform.example",
            auth_headers=auth_headers,
            default_model_id="nano-banana-pro/edit",
        )

    app = create_app(http, tracker, live_prober, factory, service_name="test-api", service_version="9.9.9")
    return app, tracker


@pytest.fixture
def client():
    app, _ = build(post_responses=[accepted("job-1"), accepted("job-2"), accepted("job-1")])
    with TestClient(app) as c:
        yield c


class TestMeta:
    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert body["service"] == "test-api"
        assert body["version"] == "9.9.9"

    def test_index_lists_endpoints(self, client):
        body = client.get("/api").json()
        assert "POST /api/generate" in body["endpoints"]

    def test_request_id_header_is_echoed(self, client):
        resp = client.get("/api/health", headers={"X-Request-ID": "abc123"})
        assert resp.headers["X-Request-ID"] == "abc123"

    def test_request_id_header_is_generated(self, client):
        resp = client.get("/api/health")
        assert resp.headers["X-Request-ID"]


class TestGenerate:
    def test_accepted_and_tracked(self, client):
        resp = client.post("/api/generate", json=GENERATE_BODY)
        assert resp.status_code == 202
        body = resp.json()
        assert body["requestId"] == "job-1"
        assert body["tracked"] is True

        detail = client.get("/api/jobs/job-1").json()
        assert detail["requestId"] == "job-1"
        assert detail["contactId"] == "c-1"
        assert detail["status"] == "polling"
        assert detail["images"] == []

    def test_invalid_body_is_400_problem(self, client):
        resp = client.post("/api/generate", json={"aspect": "3:4"})
        assert resp.status_code == 400
        problem = resp.json()
        assert problem["title"] == "Invalid Generation Request"
        assert "prompt" in problem["detail"]

    def test_unsupported_resolution_is_400(self, client):
        resp = client.post("/api/generate", json={**GENERATE_BODY, "resolution": "8k"})
        assert resp.status_code == 400

    def test_duplicate_request_id_is_409(self, client):
        assert client.post("/api/generate", json=GENERATE_BODY).status_code == 202
        assert client.post("/api/generate", json=GENERATE_BODY).status_code == 202
        resp = client.post("/api/generate", json=GENERATE_BODY)
        assert resp.status_code == 409
        assert resp.json()["title"] == "Job Already Tracked"

    def test_missing_credentials_is_500(self):
        app, _ = build(auth={})
        with TestClient(app) as c:
            resp = c.post("/api/generate", json=GENERATE_BODY)
        assert resp.status_code == 500
        problem = resp.json()
        assert problem["title"] == "Missing Credentials"
        assert problem["additional"]["requestId"]

    def test_provider_refusal_keeps_status(self):
        app, _ = build(post_responses=[{"status": 422, "headers": {}, "body": {"error": "bad prompt"}}])
        with TestClient(app) as c:
            resp = c.post("/api/generate", json=GENERATE_BODY)
        assert resp.status_code == 422
        assert resp.json()["detail"] == "bad prompt"


class TestJobs:
    def test_list_counts(self, client):
        client.post("/api/generate", json=GENERATE_BODY)
        client.post("/api/generate", json={**GENERATE_BODY, "contactId": "c-2"})

        body = client.get("/api/jobs").json()
        assert body["total"] == 2
        assert body["polling"] == 2
        assert body["succeeded"] == 0
        assert body["failed"] == 0
        assert [j["requestId"] for j in body["jobs"]] == ["job-1", "job-2"]

    def test_list_with_request_id_returns_detail(self, client):
        client.post("/api/generate", json=GENERATE_BODY)
        body = client.get("/api/jobs", params={"requestId": "job-1"}).json()
        assert body["requestId"] == "job-1"

    def test_unknown_job_is_404(self, client):
        resp = client.get("/api/jobs/nope")
        assert resp.status_code == 404
        assert resp.json()["title"] == "Job Not Found"


class TestStatus:
    def test_missing_request_id_is_400(self, client):
        assert client.get("/api/status").status_code == 400

    def test_succeeded_status(self):
        app, _ = build(status_document={"status": "completed", "images": [{"url": "https://x/out.png"}]})
        with TestClient(app) as c:
            body = c.get("/api/status", params={"requestId": "job-9"}).json()
        assert body == {"requestId": "job-9", "status": "succeeded", "images": ["https://x/out.png"]}

    def test_failed_status_uses_snake_case_param(self):
        app, _ = build(status_document={"status": "failed", "error": "NSFW"})
        with TestClient(app) as c:
            body = c.get("/api/status", params={"request_id": "job-9"}).json()
        assert body["status"] == "failed"
        assert body["detail"]["reason"] == "NSFW"

    def test_still_processing_status(self):
        app, _ = build()
        with TestClient(app) as c:
            body = c.get("/api/status", params={"requestId": "job-9"}).json()
        assert body["status"] == "still_processing"
        assert body["detail"]["provider_state"] == "in_progress"

    def test_provider_error_status_is_passed_through(self):
        not_found = UpstreamException(
            ProblemDetail(title="Upstream HTTP Error", status=404, detail="unknown request")
        )
        app, _ = build(status_document=not_found)
        with TestClient(app) as c:
            resp = c.get("/api/status", params={"requestId": "does-not-exist"})
        assert resp.status_code == 404
        problem = resp.json()
        assert problem["detail"] == "unknown request"
        assert problem["status"] == 404

    def test_provider_outage_is_5xx_with_request_id(self):
        outage = UpstreamException(
            ProblemDetail(title="Upstream Timeout", status=504, detail="timed out")
        )
        app, _ = build(status_document=outage)
        with TestClient(app) as c:
            resp = c.get("/api/status", params={"requestId": "job-9"})
        assert resp.status_code == 504
        assert resp.json()["additional"]["requestId"]

    def test_missing_credentials_is_500_without_provider_call(self):
        app, _ = build(auth={}, status_document=AssertionError("provider must not be called"))
        with TestClient(app) as c:
            resp = c.get("/api/status", params={"requestId": "job-9"})
        assert resp.status_code == 500
        assert resp.json()["title"] == "Missing Credentials"


def test_lifespan_stops_scheduler():
    app, tracker = build(post_responses=[accepted("job-1")])
    with TestClient(app) as c:
        c.post("/api/generate", json=GENERATE_BODY)
        assert tracker.scheduler.is_running is True
    assert tracker.scheduler.is_running is False
