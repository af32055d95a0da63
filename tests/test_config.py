import pytest
from pydantic import ValidationError

from page_assistant.config import Settings
from page_assistant.replies import DEFAULT_PLACEHOLDER
from page_assistant.threads import ThreadPolicy


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        monkeypatch.setenv("ASSISTANT_ID", "asst_env")

        settings = Settings(_env_file=None)

        assert settings.openai_api_key == "sk-env"
        assert settings.assistant_id == "asst_env"
        assert settings.poll_interval == 1.0
        assert settings.max_poll_attempts == 60
        assert settings.max_action_rounds == 10
        assert settings.thread_policy is ThreadPolicy.REQUEST
        assert settings.empty_reply_placeholder == DEFAULT_PLACEHOLDER
        assert settings.port == 3000

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        monkeypatch.setenv("ASSISTANT_ID", "asst_env")
        monkeypatch.setenv("MAX_POLL_ATTEMPTS", "5")
        monkeypatch.setenv("THREAD_POLICY", "session")

        settings = Settings(_env_file=None)

        assert settings.max_poll_attempts == 5
        assert settings.thread_policy is ThreadPolicy.SESSION

    def test_missing_credentials(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        monkeypatch.delenv("ASSISTANT_ID", raising=False)

        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_max_poll_attempts_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(openai_api_key="sk", assistant_id="asst", max_poll_attempts=0, _env_file=None)

    def test_editable_extensions(self):
        settings = Settings(
            openai_api_key="sk",
            assistant_id="asst",
            editable_file_extensions=" .HTML, .css ,,",
            _env_file=None,
        )
        assert settings.editable_extensions == [".html", ".css"]

    def test_integrations_need_all_credentials(self):
        settings = Settings(
            openai_api_key="sk",
            assistant_id="asst",
            github_token="ghp",
            github_owner="acme",
            facebook_page_id="page_1",
            _env_file=None,
        )
        assert settings.github_configured is False
        assert settings.facebook_configured is False
