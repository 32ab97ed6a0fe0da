"""Tests for config.settings helpers."""

from pathlib import Path

from config.settings import Settings


class TestSettings:

    def test_image_types_are_split_and_lowercased(self):
        settings = Settings(IMAGE_TYPES=" image/JPEG , image/jpg,, ")

        assert settings.image_types() == ("image/jpeg", "image/jpg")

    def test_batch_size_is_at_least_one(self):
        assert Settings(BATCH_SIZE=0).batch_size() == 1
        assert Settings(BATCH_SIZE=15).batch_size() == 15

    def test_fetch_connections_never_exceed_batch_size(self):
        assert Settings(BATCH_SIZE=4, FETCH_CONNECTIONS=10).fetch_connections() == 4
        assert Settings(BATCH_SIZE=4, FETCH_CONNECTIONS=0).fetch_connections() == 1

    def test_mail_config_path(self):
        assert Settings(MAIL_CONFIG_PATH="conf/cuenta.env").mail_config_path() == Path("conf/cuenta.env")
