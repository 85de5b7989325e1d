# Logging adapter for application-wide logging
from gentrack.adapters.logging_adapter import LoggingAdapter

from pydantic import HttpUrl, SecretStr
from pydantic_settings import BaseSettings
from rich import print

from gentrack.core.interfaces.logging import LoggingPort


# using pydantic_settings to manage environment variables
# and do automatic type casting in a central place
class GentrackSettings(BaseSettings):
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }
    GENTRACK_LOG_LEVEL: str = "INFO"
    GENTRACK_API_SERVER_HOST: str = "0.0.0.0"
    GENTRACK_API_SERVER_PORT: int = 8000
    # comma separated list, "*" allows any origin
    GENTRACK_ALLOWED_ORIGINS: str = "*"
    GENTRACK_SERVICE_NAME: str = "sparkai-fashion-api"
    GENTRACK_SERVICE_VERSION: str = "0.1.0"

    # Tracker policy
    GENTRACK_POLL_INTERVAL: float = 15.0  # seconds
    GENTRACK_MAX_POLL_ATTEMPTS: int = 40  # 40 * 15s = 10 minutes
    GENTRACK_FIRST_POLL_DELAY: float = 5.0  # seconds
    GENTRACK_CALLBACK_DELAY: float = 2.0  # seconds between the two callbacks
    GENTRACK_JOB_RETENTION: float = 3600.0  # seconds a settled job stays readable
    GENTRACK_PROVIDER_TIMEOUT: float = 15.0  # seconds per provider request

    # Generation provider
    HIGGSFIELD_BASE_URL: HttpUrl = HttpUrl("https://platform.higgsfield.ai")
    HIGGSFIELD_KEY_ID: str | None = None
    HIGGSFIELD_KEY_SECRET: SecretStr | None = None
    HIGGSFIELD_BEARER_TOKEN: SecretStr | None = None
    HIGGSFIELD_API_KEY: SecretStr | None = None
    HIGGSFIELD_MODEL_ID: str = "nano-banana-pro/edit"

    # Messaging platform
    CHATGPT_BUILDER_URL: HttpUrl = HttpUrl("https://app.chatgptbuilder.io/api")
    CHATGPT_BUILDER_TOKEN: SecretStr | None = None
    CHATGPT_BUILDER_FLOW_ID: str = "1760629479392"
    CHATGPT_BUILDER_FIELD_ID: str = "871218"

    def allowed_origins(self) -> list[str]:
        origins = [o.strip() for o in self.GENTRACK_ALLOWED_ORIGINS.split(",")]
        return [o for o in origins if o] or ["*"]

    def provider_auth_headers(self) -> dict[str, str]:
        """Authorization headers for the generation provider.

        A bearer token wins over a key id/secret pair. The optional API key is
        sent in addition to either.
        """
        headers: dict[str, str] = {}
        if self.HIGGSFIELD_BEARER_TOKEN:
            headers["Authorization"] = (
                f"Bearer {self.HIGGSFIELD_BEARER_TOKEN.get_secret_value()}"
            )
        elif self.HIGGSFIELD_KEY_ID and self.HIGGSFIELD_KEY_SECRET:
            headers["Authorization"] = (
                f"Key {self.HIGGSFIELD_KEY_ID}:{self.HIGGSFIELD_KEY_SECRET.get_secret_value()}"
            )
        if self.HIGGSFIELD_API_KEY:
            headers["x-api-key"] = self.HIGGSFIELD_API_KEY.get_secret_value()
        return headers

    def print_settings(self, logger: LoggingPort):
        """Prints the settings for debugging purposes"""
        logger.info("gentrack settings:")
        print(self)


app_settings = GentrackSettings()

logger = LoggingAdapter("gentrack", app_settings.GENTRACK_LOG_LEVEL)
