"""
Unit tests for Settings - platform identity from the environment.
"""

import json

import pytest
from pydantic_settings import SettingsError

from clf_logging import CommonLogger, Identity, Settings

ENV_VARS = [
    "VCAP_APPLICATION",
    "CF_INSTANCE_INDEX",
    "CLF_DEPLOYMENT_ID",
    "CLF_APPLICATION_NAME",
    "CLF_INSTANCE_INDEX",
    "CLF_MODULE",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def vcap(**fields):
    return json.dumps(fields)


class TestSettings:
    """Test identity resolution from platform metadata."""

    def test_empty_environment(self):
        settings = Settings(_env_file=None)

        assert settings.deployment_id() is None
        assert settings.application_name() is None
        assert settings.instance_index() is None
        assert settings.module() is None

    def test_vcap_application(self, monkeypatch):
        monkeypatch.setenv(
            "VCAP_APPLICATION",
            vcap(application_id="dep-1", application_name="svc", instance_index=2),
        )

        settings = Settings(_env_file=None)

        assert settings.deployment_id() == "dep-1"
        assert settings.application_name() == "svc"
        assert settings.instance_index() == 2

    def test_cf_instance_index_fallback(self, monkeypatch):
        monkeypatch.setenv("VCAP_APPLICATION", vcap(application_id="dep-1"))
        monkeypatch.setenv("CF_INSTANCE_INDEX", "4")

        settings = Settings(_env_file=None)

        assert settings.instance_index() == "4"

    def test_overrides_win(self, monkeypatch):
        monkeypatch.setenv(
            "VCAP_APPLICATION",
            vcap(application_id="dep-1", application_name="svc", instance_index=2),
        )
        monkeypatch.setenv("CLF_DEPLOYMENT_ID", "dep-override")
        monkeypatch.setenv("CLF_APPLICATION_NAME", "svc-override")
        monkeypatch.setenv("CLF_INSTANCE_INDEX", "7")
        monkeypatch.setenv("CLF_MODULE", "billing")

        settings = Settings(_env_file=None)

        assert settings.deployment_id() == "dep-override"
        assert settings.application_name() == "svc-override"
        assert settings.instance_index() == "7"
        assert settings.module() == "billing"

    def test_malformed_vcap_application(self, monkeypatch):
        monkeypatch.setenv("VCAP_APPLICATION", "{not json")

        with pytest.raises(SettingsError):
            Settings(_env_file=None)


class TestFromSettings:
    """Test building a logger from settings."""

    def test_identity_from_settings(self, monkeypatch, stream):
        monkeypatch.setenv(
            "VCAP_APPLICATION",
            vcap(application_id="dep-1", application_name="svc", instance_index=1),
        )
        monkeypatch.setenv("CLF_MODULE", "billing")

        logger = CommonLogger.from_settings(Settings(_env_file=None), stream=stream)

        assert logger.identity == Identity("dep-1", "svc", "1", "billing")

    def test_defaults_from_empty_settings(self, stream, read_entries):
        logger = CommonLogger.from_settings(Settings(_env_file=None), stream=stream)
        logger.info("hello")

        (entry,) = read_entries()
        assert entry["dpmt"] == "na"
        assert entry["appn"] == "na"
        assert entry["inst"] == "0"
        assert "mod" not in entry
