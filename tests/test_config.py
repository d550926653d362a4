import pytest
from pydantic import ValidationError

from shortlink_app.config import Settings


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.alias_length == 8
        assert settings.cache_backend == "redis"
        assert settings.database_replica_urls == []

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("ALIAS_LENGTH", "12")
        monkeypatch.setenv("CACHE_BACKEND", "memory")

        settings = Settings(_env_file=None)

        assert settings.alias_length == 12
        assert settings.cache_backend == "memory"

    @pytest.mark.parametrize("length", [0, 65])
    def test_alias_length_out_of_range(self, length):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, alias_length=length)

    def test_alias_length_upper_bound(self):
        assert Settings(_env_file=None, alias_length=64).alias_length == 64
