"""
Configuration system for the object store client and upload settings.

Provides:
- YAML-based configuration
- Environment variable substitution (${VAR} and ${VAR:default})
- boto3 client construction with a shared connection pool
- Engine construction from files, dictionaries or the environment
"""

import logging
import os
import re
from pathlib import Path
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field

import boto3
import yaml
from botocore.config import Config

from .engine import BucketSyncEngine
from .errors import ConfigurationError
from .providers.s3 import S3ObjectStore
from .scheduler import MAX_CONCURRENT_UPLOADS

logger = logging.getLogger(__name__)

ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")
VALID_ADDRESSING_STYLES = {"auto", "path", "virtual"}


@dataclass
class StorageConfig:
    """Connection settings for an S3-compatible endpoint."""
    bucket: str
    endpoint_url: Optional[str] = None  # None means AWS S3
    region: str = "us-east-1"
    credentials: Optional[Dict[str, Any]] = None
    addressing_style: str = "path"
    max_attempts: int = 10
    max_pool_connections: int = 100
    connect_timeout: int = 60
    read_timeout: int = 60

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (credentials are never included)."""
        return {
            "bucket": self.bucket,
            "endpoint_url": self.endpoint_url,
            "region": self.region,
            "addressing_style": self.addressing_style,
            "max_attempts": self.max_attempts,
            "max_pool_connections": self.max_pool_connections,
            "connect_timeout": self.connect_timeout,
            "read_timeout": self.read_timeout,
        }


@dataclass
class SyncConfig:
    """Settings for an upload run."""
    storage_config: StorageConfig
    local_dir: Optional[Path] = None
    prefix: str = ""
    sync: bool = False
    max_concurrent: int = MAX_CONCURRENT_UPLOADS
    create_bucket: bool = True
    exclude_patterns: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "storage": self.storage_config.to_dict(),
            "local_dir": str(self.local_dir) if self.local_dir else None,
            "prefix": self.prefix,
            "sync": self.sync,
            "max_concurrent": self.max_concurrent,
            "create_bucket": self.create_bucket,
            "exclude_patterns": list(self.exclude_patterns),
        }


class S3ClientFactory:
    """Builds the single boto3 client shared by all upload threads."""

    @staticmethod
    def create_client(config: StorageConfig):
        """
        Create a boto3 S3 client from config.

        Retries are left to botocore's standard retry mode.
        """
        creds = config.credentials or {}
        session = boto3.session.Session(
            aws_access_key_id=creds.get("aws_access_key_id"),
            aws_secret_access_key=creds.get("aws_secret_access_key"),
            aws_session_token=creds.get("aws_session_token"),
            region_name=config.region,
        )

        client_config = Config(
            retries={"max_attempts": config.max_attempts, "mode": "standard"},
            max_pool_connections=config.max_pool_connections,
            connect_timeout=config.connect_timeout,
            read_timeout=config.read_timeout,
            s3={"addressing_style": config.addressing_style},
        )

        return session.client("s3", endpoint_url=config.endpoint_url, config=client_config)

    @staticmethod
    def create_store(config: StorageConfig) -> S3ObjectStore:
        """Create an S3ObjectStore around a new client."""
        return S3ObjectStore(S3ClientFactory.create_client(config))


class ConfigManager:
    """Manages configuration loading and storage."""

    @staticmethod
    def load_yaml(config_path: Path) -> Dict[str, Any]:
        """
        Load configuration from YAML file.

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If config is invalid YAML
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, "r") as f:
            config = yaml.safe_load(f) or {}

        logger.info(f"Loaded configuration from {config_path}")
        return config

    @staticmethod
    def save_yaml(config: Dict[str, Any], config_path: Path) -> None:
        """Save configuration to YAML file."""
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w") as f:
            yaml.safe_dump(config, f, default_flow_style=False)

        logger.info(f"Saved configuration to {config_path}")

    @staticmethod
    def create_storage_config(config_dict: Dict[str, Any]) -> StorageConfig:
        """
        Create StorageConfig from dictionary.

        Raises:
            ConfigurationError: If the bucket is missing or a value is invalid
        """
        return ConfigManager._build_storage_config(ConfigManager._substitute_env_vars(config_dict or {}))

    @staticmethod
    def _build_storage_config(config_dict: Dict[str, Any]) -> StorageConfig:
        bucket = config_dict.get("bucket")
        if not bucket:
            raise ConfigurationError("'bucket' field is required")

        addressing_style = config_dict.get("addressing_style", "path")
        if addressing_style not in VALID_ADDRESSING_STYLES:
            raise ConfigurationError(f"Invalid addressing_style: {addressing_style}")

        return StorageConfig(
            bucket=bucket,
            endpoint_url=config_dict.get("endpoint_url") or None,
            region=config_dict.get("region") or "us-east-1",
            credentials=config_dict.get("credentials"),
            addressing_style=addressing_style,
            max_attempts=_as_int(config_dict, "max_attempts", 10),
            max_pool_connections=_as_int(config_dict, "max_pool_connections", 100),
            connect_timeout=_as_int(config_dict, "connect_timeout", 60),
            read_timeout=_as_int(config_dict, "read_timeout", 60),
        )

    @staticmethod
    def create_sync_config(config_dict: Dict[str, Any]) -> SyncConfig:
        """Create SyncConfig from dictionary."""
        config_dict = ConfigManager._substitute_env_vars(config_dict or {})
        storage_config = ConfigManager._build_storage_config(config_dict.get("storage") or {})

        max_concurrent = _as_int(config_dict, "max_concurrent", MAX_CONCURRENT_UPLOADS)
        if max_concurrent < 1:
            raise ConfigurationError(f"max_concurrent must be >= 1, got {max_concurrent}")

        local_dir = config_dict.get("local_dir")

        return SyncConfig(
            storage_config=storage_config,
            local_dir=Path(local_dir) if local_dir else None,
            prefix=config_dict.get("prefix") or "",
            sync=_as_bool(config_dict.get("sync", False)),
            max_concurrent=max_concurrent,
            create_bucket=_as_bool(config_dict.get("create_bucket", True)),
            exclude_patterns=list(config_dict.get("exclude_patterns") or []),
        )

    @staticmethod
    def _substitute_env_vars(config: Any) -> Any:
        """
        Recursively substitute environment variables in config.

        Format: ${VAR_NAME} or ${VAR_NAME:default_value}
        """
        if isinstance(config, dict):
            return {k: ConfigManager._substitute_env_vars(v) for k, v in config.items()}
        elif isinstance(config, list):
            return [ConfigManager._substitute_env_vars(item) for item in config]
        elif isinstance(config, str):
            def replacer(match):
                var_spec = match.group(1)
                if ":" in var_spec:
                    var_name, default = var_spec.split(":", 1)
                    return os.getenv(var_name.strip(), default.strip())
                return os.getenv(var_spec, match.group(0))

            return ENV_PATTERN.sub(replacer, config)
        else:
            return config


def _as_int(config_dict: Dict[str, Any], name: str, default: int) -> int:
    value = config_dict.get(name, default)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"'{name}' must be an integer, got {value!r}") from e


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


class SyncEngineBuilder:
    """Builder for creating configured engines."""

    @staticmethod
    def from_config_file(config_path: Path) -> BucketSyncEngine:
        """Create an engine from a YAML configuration file."""
        return SyncEngineBuilder.from_config_dict(ConfigManager.load_yaml(config_path))

    @staticmethod
    def from_config_dict(config_dict: Dict[str, Any]) -> BucketSyncEngine:
        """Create an engine from a configuration dictionary."""
        return SyncEngineBuilder.from_sync_config(ConfigManager.create_sync_config(config_dict))

    @staticmethod
    def from_sync_config(sync_config: SyncConfig, cancel_event=None) -> BucketSyncEngine:
        """Create an engine from a SyncConfig."""
        store = S3ClientFactory.create_store(sync_config.storage_config)
        engine = BucketSyncEngine(
            store=store,
            bucket=sync_config.storage_config.bucket,
            max_concurrent=sync_config.max_concurrent,
            create_bucket=sync_config.create_bucket,
            cancel_event=cancel_event,
        )

        endpoint = sync_config.storage_config.endpoint_url or "AWS S3"
        logger.info(f"Created sync engine for bucket {engine.bucket} at {endpoint}")
        return engine

    @staticmethod
    def env_config_dict() -> Dict[str, Any]:
        """
        Build a configuration dictionary from environment variables.

        Expected environment variables:
        - BUCKETSYNC_BUCKET: bucket name (required)
        - BUCKETSYNC_ENDPOINT_URL: S3-compatible endpoint (optional)
        - BUCKETSYNC_REGION: region (default us-east-1)
        - BUCKETSYNC_PREFIX: remote key prefix
        - BUCKETSYNC_MAX_CONCURRENT: transfers in flight (default 96)
        - BUCKETSYNC_MAX_ATTEMPTS: botocore retry attempts (default 10)
        """
        bucket = os.getenv("BUCKETSYNC_BUCKET")
        if not bucket:
            raise ConfigurationError("BUCKETSYNC_BUCKET environment variable is required")

        return {
            "storage": {
                "bucket": bucket,
                "endpoint_url": os.getenv("BUCKETSYNC_ENDPOINT_URL"),
                "region": os.getenv("BUCKETSYNC_REGION", "us-east-1"),
                "max_attempts": os.getenv("BUCKETSYNC_MAX_ATTEMPTS", "10"),
            },
            "prefix": os.getenv("BUCKETSYNC_PREFIX", ""),
            "max_concurrent": os.getenv("BUCKETSYNC_MAX_CONCURRENT", str(MAX_CONCURRENT_UPLOADS)),
        }

    @staticmethod
    def from_env() -> BucketSyncEngine:
        """Create an engine from environment variables."""
        return SyncEngineBuilder.from_config_dict(SyncEngineBuilder.env_config_dict())
