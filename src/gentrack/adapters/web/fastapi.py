# gentrack/adapters/web/fastapi.py
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Callable, Optional

import time
import uuid

from fastapi import FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from gentrack.core.exceptions import (
    DuplicateJobError,
    GenerationSubmitError,
    MissingCredentialsError,
    UpstreamException,
)
from gentrack.core.interfaces.http_client import HttpClientPort
from gentrack.core.interfaces.status_prober import StatusProberPort
from gentrack.core.logging_config import correlation_id_var
from gentrack.core.managers.generation_manager import GenerationManager
from gentrack.core.managers.job_tracker import JobTracker
from gentrack.core.models.generation_request import GenerationRequest
from gentrack.core.models.job import JobDetail, JobList, JobState, JobSummary
from gentrack.core.models.outcome import Succeeded
from gentrack.core.models.problem import ProblemDetail
from gentrack.core.settings import logger


# Driver adapter: it depends on the core managers, the core does not know
# about HTTP. Concrete collaborators are assembled in main; the generation
# manager comes as a factory that receives the opened HTTP client.
def create_app(
    http_client: HttpClientPort,
    tracker: JobTracker,
    prober: StatusProberPort,
    generation_manager_factory: Callable[[HttpClientPort], GenerationManager],
    allowed_origins: Optional[list[str]] = None,
    service_name: str = "sparkai-fashion-api",
    service_version: str = "0.1.0",
):
    """Create the FastAPI app.

    The tracker (store + scheduler) outlives requests; the HTTP session is
    opened in the lifespan and the scheduler is stopped when the app shuts down.
    """
    started_at = time.monotonic()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with http_client as client:
            app.state.prober = prober
            app.state.generation_manager = generation_manager_factory(client)
            app.state.tracker = tracker
            try:
                yield
            finally:
                await tracker.shutdown()

    app = FastAPI(title="gentrack", lifespan=lifespan)

    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-API-Key", "Authorization", "X-Request-ID"],
        max_age=86400,
    )

    def render_problem(
        problem: ProblemDetail,
        *,
        include_request_id: bool = False,
    ) -> JSONResponse:
        payload = jsonable_encoder(problem.model_dump(exclude_none=True))
        response = JSONResponse(status_code=problem.status, content=payload)
        if include_request_id and problem.additional and problem.additional.requestId:
            response.headers["X-Request-ID"] = problem.additional.requestId
        return response

    def build_problem(
        status: int,
        title: str,
        detail: str,
        request: Request,
    ) -> ProblemDetail:
        problem = ProblemDetail(
            title=title,
            status=status,
            detail=detail,
            instance=str(request.url),
        )
        if status >= 500:
            problem = problem.with_request_id(correlation_id_var.get())
        return problem

    # Correlation ID middleware: per-request id (header override) exposed to logging
    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next):
        incoming = request.headers.get("x-request-id")
        cid = incoming or uuid.uuid4().hex[:12]
        token = correlation_id_var.set(cid)
        try:
            response = await call_next(request)
        finally:
            correlation_id_var.reset(token)
        response.headers["X-Request-ID"] = cid
        return response

    @app.exception_handler(UpstreamException)
    async def upstream_exception_handler(request: Request, exc: UpstreamException):
        status_code = exc.response.status
        include_request_id = status_code >= 500
        problem = exc.response.model_copy(update={"instance": str(request.url)})
        if include_request_id:
            problem = problem.with_request_id(correlation_id_var.get())
        return render_problem(problem, include_request_id=include_request_id)

    @app.exception_handler(MissingCredentialsError)
    async def missing_credentials_handler(request: Request, exc: MissingCredentialsError):
        problem = build_problem(500, "Missing Credentials", f"{exc.message}. {exc.hint}", request)
        return render_problem(problem, include_request_id=True)

    @app.exception_handler(GenerationSubmitError)
    async def submit_error_handler(request: Request, exc: GenerationSubmitError):
        problem = build_problem(exc.upstream_status, "Generation Submit Failed", exc.message, request)
        return render_problem(problem, include_request_id=exc.upstream_status >= 500)

    @app.exception_handler(DuplicateJobError)
    async def duplicate_job_handler(request: Request, exc: DuplicateJobError):
        problem = build_problem(409, "Job Already Tracked", exc.message, request)
        return render_problem(problem)

    @app.get("/api")
    async def index():
        return {
            "service": service_name,
            "version": service_version,
            "endpoints": {
                "POST /api/generate": "Submit an image generation request",
                "GET /api/status?requestId=": "Check provider status for a request",
                "GET /api/jobs": "List tracked jobs",
                "GET /api/jobs/{requestId}": "Get one tracked job",
                "GET /api/health": "Health check",
            },
        }

    @app.get("/api/health")
    async def health():
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": service_name,
            "version": service_version,
            "uptime": round(time.monotonic() - started_at, 3),
        }

    @app.post("/api/generate", status_code=202)
    async def generate(request: Request):
        try:
            raw = await request.json()
        except Exception:
            raw = {}

        try:
            gen_req = GenerationRequest.model_validate(raw if isinstance(raw, dict) else {})
        except ValidationError as ve:
            detail_messages = []
            for err in ve.errors():
                loc = ".".join(str(part) for part in err.get("loc", []))
                msg = err.get("msg", "invalid value")
                detail_messages.append(f"{loc or 'body'}: {msg}")
            detail_text = "; ".join(detail_messages) or "Invalid generation request payload"
            problem = build_problem(400, "Invalid Generation Request", detail_text, request)
            return render_problem(problem)

        result = await app.state.generation_manager.submit(gen_req)
        return JSONResponse(status_code=202, content=jsonable_encoder(result))

    @app.get("/api/status")
    async def status(
        request: Request,
        request_id: Optional[str] = Query(default=None, alias="requestId"),
        request_id_snake: Optional[str] = Query(default=None, alias="request_id"),
    ):
        rid = request_id or request_id_snake
        if not rid:
            problem = build_problem(400, "Missing Request Id", "requestId is required", request)
            return render_problem(problem)
        outcome = await app.state.prober.fetch_status(rid)
        body = {"requestId": rid, "status": outcome.kind, "images": []}
        if isinstance(outcome, Succeeded):
            body["images"] = outcome.artifacts
        else:
            body["detail"] = outcome.model_dump(exclude={"kind"}, exclude_none=True)
        return body

    @app.get("/api/jobs")
    async def list_jobs(
        request: Request,
        request_id: Optional[str] = Query(default=None, alias="requestId"),
    ):
        if request_id:
            return await get_job(request_id, request)
        jobs = await app.state.tracker.list_all()
        listing = JobList(
            total=len(jobs),
            polling=sum(1 for j in jobs if j.state == JobState.polling),
            succeeded=sum(1 for j in jobs if j.state == JobState.succeeded),
            failed=sum(1 for j in jobs if j.state == JobState.failed),
            jobs=[JobSummary.from_job(j) for j in jobs],
        )
        return JSONResponse(content=jsonable_encoder(listing))

    @app.get("/api/jobs/{request_id}")
    async def get_job(request_id: str, request: Request):
        job = await app.state.tracker.get(request_id)
        if job is None:
            problem = build_problem(404, "Job Not Found", f"Job '{request_id}' not found", request)
            return render_problem(problem)
        return JSONResponse(content=jsonable_encoder(JobDetail.from_job(job)))

    logger.debug(f"[web:create] app created origins={origins}")
    return app
