# main.py
import uvicorn

from gentrack.adapters.aiohttp_client_adapter import AioHttpClientAdapter
from gentrack.adapters.chatgpt_builder_client import ChatGptBuilderClient
from gentrack.adapters.higgsfield_status_prober import HiggsfieldStatusProber
from gentrack.adapters.job_store_inmemory import InMemoryJobStore
from gentrack.adapters.retry_tenacity import TenacityRetryAdapter
from gentrack.adapters.web.fastapi import create_app
from gentrack.core.config import JobTrackerConfig
from gentrack.core.logging_config import configure_logging, generate_uvicorn_log_config
from gentrack.core.managers.callback_dispatcher import CallbackDispatcher
from gentrack.core.managers.generation_manager import GenerationManager
from gentrack.core.managers.job_tracker import JobTracker
from gentrack.core.managers.poll_scheduler import PollScheduler
from gentrack.core.settings import GentrackSettings, app_settings, logger


# main lives at the outermost layer (not in core)
# Instantiates all the concrete adapters
# Wires dependencies together
# Starts the application

def build_app(settings: GentrackSettings = app_settings):
    http_client = AioHttpClientAdapter(default_timeout=settings.GENTRACK_PROVIDER_TIMEOUT)
    store = InMemoryJobStore()
    tracker_config = JobTrackerConfig.from_app_settings(settings)
    auth_headers = settings.provider_auth_headers()
    messaging_token = (
        settings.CHATGPT_BUILDER_TOKEN.get_secret_value()
        if settings.CHATGPT_BUILDER_TOKEN
        else None
    )
    if not messaging_token:
        logger.warning("[main] CHATGPT_BUILDER_TOKEN not set; callbacks will be skipped")

    # The prober and messaging client share the single aiohttp session; the
    # session only exists once the app lifespan has entered the client.
    prober = HiggsfieldStatusProber(
        http_client,
        base_url=str(settings.HIGGSFIELD_BASE_URL),
        auth_headers=auth_headers,
        timeout=settings.GENTRACK_PROVIDER_TIMEOUT,
    )
    messaging = ChatGptBuilderClient(
        http_client,
        base_url=str(settings.CHATGPT_BUILDER_URL),
        access_token=messaging_token,
        field_id=settings.CHATGPT_BUILDER_FIELD_ID,
        flow_id=settings.CHATGPT_BUILDER_FLOW_ID,
    )
    dispatcher = CallbackDispatcher(messaging, delay=tracker_config.callback_delay)
    scheduler = PollScheduler(store, prober, dispatcher, tracker_config)
    tracker = JobTracker(store, scheduler)

    def generation_manager_factory(client):
        retry_adapter = TenacityRetryAdapter(attempts=3, wait_initial=0.5, wait_max=4.0)
        return GenerationManager(
            http_client=client,
            tracker=tracker,
            base_url=str(settings.HIGGSFIELD_BASE_URL),
            auth_headers=auth_headers,
            default_model_id=settings.HIGGSFIELD_MODEL_ID,
            retry_port=retry_adapter,
            timeout=settings.GENTRACK_PROVIDER_TIMEOUT,
        )

    return create_app(
        http_client=http_client,
        tracker=tracker,
        prober=prober,
        generation_manager_factory=generation_manager_factory,
        allowed_origins=settings.allowed_origins(),
        service_name=settings.GENTRACK_SERVICE_NAME,
        service_version=settings.GENTRACK_SERVICE_VERSION,
    )


def main():
    # Central logging configuration before anything logs
    configure_logging(app_settings.GENTRACK_LOG_LEVEL)
    app_settings.print_settings(logger)

    app = build_app(app_settings)

    uvicorn.run(
        app,
        host=app_settings.GENTRACK_API_SERVER_HOST,
        port=app_settings.GENTRACK_API_SERVER_PORT,
        log_config=generate_uvicorn_log_config(app_settings.GENTRACK_LOG_LEVEL),
        log_level=str(app_settings.GENTRACK_LOG_LEVEL).lower(),
    )


if __name__ == "__main__":
    main()
