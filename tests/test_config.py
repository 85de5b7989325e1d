import pytest
from pydantic import ValidationError

from gentrack.core.config import JobTrackerConfig
from gentrack.core.settings import GentrackSettings

PROVIDER_ENV = (
    "HIGGSFIELD_KEY_ID",
    "HIGGSFIELD_KEY_SECRET",
    "HIGGSFIELD_BEARER_TOKEN",
    "HIGGSFIELD_API_KEY",
    "GENTRACK_ALLOWED_ORIGINS",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in PROVIDER_ENV:
        monkeypatch.delenv(name, raising=False)


def make_settings(**values):
    return GentrackSettings(_env_file=None, **values)


class TestJobTrackerConfig:
    def test_defaults(self):
        config = JobTrackerConfig()
        assert config.poll_interval == 15.0
        assert config.max_poll_attempts == 40
        assert config.first_poll_delay == 5.0
        assert config.callback_delay == 2.0
        assert config.retention == 3600.0

    def test_first_poll_must_precede_first_tick(self):
        with pytest.raises(ValidationError):
            JobTrackerConfig(poll_interval=5, first_poll_delay=5)

    @pytest.mark.parametrize(
        "field,value",
        [("poll_interval", 0), ("max_poll_attempts", 0), ("callback_delay", -1), ("retention", 0)],
    )
    def test_rejects_out_of_range(self, field, value):
        with pytest.raises(ValidationError):
            JobTrackerConfig(**{field: value})

    def test_is_frozen(self):
        config = JobTrackerConfig()
        with pytest.raises(ValidationError):
            config.poll_interval = 1

    def test_from_app_settings(self, clean_env):
        settings = make_settings(GENTRACK_POLL_INTERVAL=30, GENTRACK_MAX_POLL_ATTEMPTS=10)
        config = JobTrackerConfig.from_app_settings(settings)
        assert config.poll_interval == 30
        assert config.max_poll_attempts == 10


class TestProviderAuthHeaders:
    def test_no_credentials(self, clean_env):
        assert make_settings().provider_auth_headers() == {}

    def test_key_pair(self, clean_env):
        settings = make_settings(HIGGSFIELD_KEY_ID="kid", HIGGSFIELD_KEY_SECRET="secret")
        assert settings.provider_auth_headers() == {"Authorization": "Key kid:secret"}

    def test_key_id_without_secret_is_not_a_credential(self, clean_env):
        settings = make_settings(HIGGSFIELD_KEY_ID="kid", HIGGSFIELD_API_KEY="ak")
        assert "Authorization" not in settings.provider_auth_headers()

    def test_bearer_wins_and_api_key_is_added(self, clean_env):
        settings = make_settings(
            HIGGSFIELD_KEY_ID="kid",
            HIGGSFIELD_KEY_SECRET="secret",
            HIGGSFIELD_BEARER_TOKEN="tok",
            HIGGSFIELD_API_KEY="ak",
        )
        assert settings.provider_auth_headers() == {
            "Authorization": "Bearer tok",
            "x-api-key": "ak",
        }

    def test_allowed_origins(self, clean_env):
        settings = make_settings(GENTRACK_ALLOWED_ORIGINS="https://a.example, https://b.example,")
        assert settings.allowed_origins() == ["https://a.example", "https://b.example"]
