"""Tests for configuration loading and engine construction."""

import os
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import yaml

from bucketsync.config import (
    ConfigManager,
    S3ClientFactory,
    StorageConfig,
    SyncConfig,
    SyncEngineBuilder,
)
from bucketsync.engine import BucketSyncEngine
from bucketsync.errors import ConfigurationError
from bucketsync.providers.s3 import S3ObjectStore


@pytest.fixture
def config_dict():
    return {
        "storage": {
            "bucket": "my-bucket",
            "endpoint_url": "http://localhost:9000",
            "region": "eu-central",
            "credentials": {
                "aws_access_key_id": "minio",
                "aws_secret_access_key": "minio123",
            },
            "max_attempts": 5,
        },
        "local_dir": "/data/raw",
        "prefix": "raw/",
        "sync": True,
        "max_concurrent": 16,
        "exclude_patterns": ["*.tmp"],
    }


class TestStorageConfig:
    """Tests for StorageConfig."""

    def test_defaults(self):
        config = StorageConfig(bucket="b")

        assert config.region == "us-east-1"
        assert config.max_attempts == 10
        assert config.addressing_style == "path"

    def test_to_dict_hides_credentials(self):
        config = StorageConfig(bucket="b", credentials={"aws_secret_access_key": "s"})

        d = config.to_dict()
        assert d["bucket"] == "b"
        assert "credentials" not in d


class TestConfigManager:
    """Tests for ConfigManager."""

    def test_create_sync_config(self, config_dict):
        config = ConfigManager.create_sync_config(config_dict)

        assert isinstance(config, SyncConfig)
        assert config.storage_config.bucket == "my-bucket"
        assert config.storage_config.endpoint_url == "http://localhost:9000"
        assert config.storage_config.max_attempts == 5
        assert config.local_dir == Path("/data/raw")
        assert config.prefix == "raw/"
        assert config.sync is True
        assert config.max_concurrent == 16
        assert config.create_bucket is True
        assert config.exclude_patterns == ["*.tmp"]

    def test_sync_config_defaults(self):
        config = ConfigManager.create_sync_config({"storage": {"bucket": "b"}})

        assert config.max_concurrent == 96
        assert config.sync is False
        assert config.prefix == ""
        assert config.local_dir is None

    def test_missing_bucket(self):
        with pytest.raises(ConfigurationError, match="bucket"):
            ConfigManager.create_storage_config({"region": "us-east-1"})

    def test_invalid_addressing_style(self):
        with pytest.raises(ConfigurationError, match="addressing_style"):
            ConfigManager.create_storage_config({"bucket": "b", "addressing_style": "diagonal"})

    def test_invalid_integer(self):
        with pytest.raises(ConfigurationError, match="max_concurrent"):
            ConfigManager.create_sync_config({"storage": {"bucket": "b"}, "max_concurrent": "lots"})

    def test_non_positive_concurrency(self):
        with pytest.raises(ConfigurationError):
            ConfigManager.create_sync_config({"storage": {"bucket": "b"}, "max_concurrent": 0})

    def test_string_booleans(self):
        config = ConfigManager.create_sync_config(
            {"storage": {"bucket": "b"}, "sync": "yes", "create_bucket": "false"}
        )

        assert config.sync is True
        assert config.create_bucket is False

    def test_env_var_substitution(self, monkeypatch):
        monkeypatch.setenv("TEST_BUCKET", "my-test-bucket")

        config_dict = ConfigManager._substitute_env_vars({"bucket": "${TEST_BUCKET}"})

        assert config_dict["bucket"] == "my-test-bucket"

    def test_env_var_with_default(self, monkeypatch):
        monkeypatch.delenv("NONEXISTENT_VAR", raising=False)

        config_dict = ConfigManager._substitute_env_vars({"region": "${NONEXISTENT_VAR:us-east-1}"})

        assert config_dict["region"] == "us-east-1"

    def test_env_var_nested_in_list(self, monkeypatch):
        monkeypatch.setenv("EXCLUDE", "*.log")

        result = ConfigManager._substitute_env_vars({"exclude_patterns": ["${EXCLUDE}", "*.tmp"]})

        assert result["exclude_patterns"] == ["*.log", "*.tmp"]

    def test_env_vars_expanded_once(self, monkeypatch):
        monkeypatch.setenv("OUTER_BUCKET", "${INNER_BUCKET}")
        monkeypatch.setenv("INNER_BUCKET", "wrong-bucket")

        sync_config = ConfigManager.create_sync_config({"storage": {"bucket": "${OUTER_BUCKET}"}})
        storage_config = ConfigManager.create_storage_config({"bucket": "${OUTER_BUCKET}"})

        assert sync_config.storage_config.bucket == "${INNER_BUCKET}"
        assert storage_config.bucket == "${INNER_BUCKET}"

    def test_yaml_round_trip(self, temp_dir, config_dict):
        path = temp_dir / "config" / "storage.yaml"

        ConfigManager.save_yaml(config_dict, path)
        loaded = ConfigManager.load_yaml(path)

        assert loaded == config_dict

    def test_load_missing_yaml(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            ConfigManager.load_yaml(temp_dir / "missing.yaml")

    def test_load_empty_yaml(self, temp_dir):
        path = temp_dir / "empty.yaml"
        path.write_text("")

        assert ConfigManager.load_yaml(path) == {}


class TestS3ClientFactory:
    """Tests for boto3 client construction."""

    @patch("bucketsync.config.boto3.session.Session")
    def test_create_client(self, mock_session_cls):
        config = StorageConfig(
            bucket="b",
            endpoint_url="http://localhost:9000",
            region="eu-central",
            credentials={"aws_access_key_id": "id", "aws_secret_access_key": "secret"},
            max_attempts=7,
            max_pool_connections=128,
        )

        S3ClientFactory.create_client(config)

        session_kwargs = mock_session_cls.call_args.kwargs
        assert session_kwargs["aws_access_key_id"] == "id"
        assert session_kwargs["region_name"] == "eu-central"

        args, kwargs = mock_session_cls.return_value.client.call_args
        assert args == ("s3",)
        assert kwargs["endpoint_url"] == "http://localhost:9000"
        client_config = kwargs["config"]
        assert client_config.retries == {"max_attempts": 7, "mode": "standard"}
        assert client_config.max_pool_connections == 128
        assert client_config.s3 == {"addressing_style": "path"}

    @patch("bucketsync.config.S3ClientFactory.create_client")
    def test_create_store(self, mock_create_client):
        store = S3ClientFactory.create_store(StorageConfig(bucket="b"))

        assert isinstance(store, S3ObjectStore)
        assert store.client is mock_create_client.return_value


class TestSyncEngineBuilder:
    """Tests for SyncEngineBuilder."""

    @patch("bucketsync.config.S3ClientFactory.create_client")
    def test_from_config_dict(self, mock_create_client, config_dict):
        engine = SyncEngineBuilder.from_config_dict(config_dict)

        assert isinstance(engine, BucketSyncEngine)
        assert engine.bucket == "my-bucket"
        assert engine.max_concurrent == 16
        assert engine.scheduler.max_concurrent == 16

    @patch("bucketsync.config.S3ClientFactory.create_client")
    def test_from_config_file(self, mock_create_client, temp_dir, config_dict):
        path = temp_dir / "storage.yaml"
        path.write_text(yaml.safe_dump(config_dict))

        engine = SyncEngineBuilder.from_config_file(path)

        assert engine.bucket == "my-bucket"

    @patch("bucketsync.config.S3ClientFactory.create_client")
    def test_from_env(self, mock_create_client, monkeypatch):
        monkeypatch.setenv("BUCKETSYNC_BUCKET", "env-bucket")
        monkeypatch.setenv("BUCKETSYNC_MAX_CONCURRENT", "12")

        engine = SyncEngineBuilder.from_env()

        assert engine.bucket == "env-bucket"
        assert engine.max_concurrent == 12

    def test_from_env_requires_bucket(self, monkeypatch):
        monkeypatch.delenv("BUCKETSYNC_BUCKET", raising=False)

        with pytest.raises(ConfigurationError, match="BUCKETSYNC_BUCKET"):
            SyncEngineBuilder.from_env()
