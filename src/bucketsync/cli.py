"""
Command line interface for bucket synchronization.

Usage:
    bucketsync upload --config storage.yaml --local-dir data/raw --prefix raw/
    bucketsync sync --config storage.yaml --local-dir data/ --prefix data/
    bucketsync list --config storage.yaml --prefix data/
    bucketsync download --config storage.yaml --prefix data/ --local-dir restore/ --exclude .tmp

Without --config the storage settings are read from BUCKETSYNC_* environment
variables.

Exit codes: 0 on success, 1 on a fatal error, 2 when some files failed.
"""

import argparse
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import ConfigManager, SyncConfig, SyncEngineBuilder
from .errors import BucketSyncError
from .log import configure_logging
from .models import UploadSummary

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_PARTIAL = 2


def print_summary(summary: UploadSummary, show_errors: int = 10) -> None:
    """Print an upload summary."""
    print("\nUpload Summary:")
    print(f"  Total:    {summary.total_files}")
    print(f"  Uploaded: {summary.uploaded_count}")
    print(f"  Skipped:  {summary.skipped_count}")
    print(f"  Failed:   {summary.error_count}")

    failed = summary.failed_results
    if failed:
        print(f"\nFailed files (showing {min(len(failed), show_errors)} of {len(failed)}):")
        for result in failed[:show_errors]:
            print(f"  {result.file_path}: {result.error}")


def load_sync_config(args) -> SyncConfig:
    """Build a SyncConfig from --config (or the environment) and CLI overrides."""
    if args.config:
        config_dict: Dict[str, Any] = ConfigManager.load_yaml(args.config)
    else:
        config_dict = SyncEngineBuilder.env_config_dict()

    overrides = {
        "local_dir": getattr(args, "local_dir", None),
        "prefix": getattr(args, "prefix", None),
        "max_concurrent": getattr(args, "max_concurrent", None),
    }
    for name, value in overrides.items():
        if value is not None:
            config_dict[name] = str(value) if isinstance(value, Path) else value

    if getattr(args, "no_create_bucket", False):
        config_dict["create_bucket"] = False

    return ConfigManager.create_sync_config(config_dict)


def make_cancel_handler(cancel_event: threading.Event):
    """Build a SIGINT handler that cancels transfers, aborting on a second Ctrl+C."""

    def handler(signum, frame):
        if cancel_event.is_set():
            raise KeyboardInterrupt
        logger.warning("Cancelling transfers (press Ctrl+C again to abort)")
        cancel_event.set()

    return handler


def _upload(args, sync: bool) -> int:
    sync_config = load_sync_config(args)
    if sync_config.local_dir is None:
        logger.error("--local-dir is required (or local_dir in the config file)")
        return EXIT_FAILURE

    exclude: List[str] = list(sync_config.exclude_patterns) + list(args.exclude or [])
    engine = SyncEngineBuilder.from_sync_config(sync_config, cancel_event=args.cancel_event)

    logger.info(
        f"{'Syncing' if sync else 'Uploading'} {sync_config.local_dir} "
        f"to {engine.bucket}/{sync_config.prefix}"
    )
    summary = engine.upload_directory(
        sync_config.local_dir,
        prefix=sync_config.prefix,
        sync=sync,
        exclude_patterns=exclude,
    )

    print_summary(summary)
    return EXIT_OK if summary.ok else EXIT_PARTIAL


def upload_command(args) -> int:
    """Execute upload command."""
    return _upload(args, sync=False)


def sync_command(args) -> int:
    """Execute sync command."""
    return _upload(args, sync=True)


def list_command(args) -> int:
    """Execute list command."""
    sync_config = load_sync_config(args)
    engine = SyncEngineBuilder.from_sync_config(sync_config)

    objects = engine.list_objects(sync_config.prefix)
    for obj in objects:
        print(f"{obj.size:>12,}  {obj.key}")
    print(f"\n{len(objects)} objects")
    return EXIT_OK


def download_command(args) -> int:
    """Execute download command."""
    sync_config = load_sync_config(args)
    if sync_config.local_dir is None:
        logger.error("--local-dir is required (or local_dir in the config file)")
        return EXIT_FAILURE

    engine = SyncEngineBuilder.from_sync_config(sync_config)
    paths = engine.download_prefix(
        sync_config.prefix,
        sync_config.local_dir,
        exclude_suffixes=args.exclude,
    )
    print(f"\nDownloaded {len(paths)} objects to {sync_config.local_dir}")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bucketsync",
        description="Upload local directory trees to S3-compatible object storage",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: BUCKETSYNC_* environment variables)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command")

    for name, func, help_text in (
        ("upload", upload_command, "Upload every file in a local directory"),
        ("sync", sync_command, "Upload only files whose MD5 changed"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--local-dir", type=Path, help="Local directory to upload")
        sub.add_argument("--prefix", type=str, help="Remote key prefix")
        sub.add_argument("--exclude", nargs="+", help="Glob patterns of relative paths to exclude")
        sub.add_argument("--max-concurrent", type=int, help="Transfers in flight at once")
        sub.add_argument("--no-create-bucket", action="store_true", help="Fail if the bucket is missing")
        sub.set_defaults(func=func)

    listing = subparsers.add_parser("list", help="List remote objects")
    listing.add_argument("--prefix", type=str, help="Remote key prefix")
    listing.set_defaults(func=list_command)

    download = subparsers.add_parser("download", help="Download a remote prefix")
    download.add_argument("--prefix", type=str, required=True, help="Remote key prefix")
    download.add_argument("--local-dir", type=Path, required=True, help="Local destination directory")
    download.add_argument("--exclude", nargs="+", help="Key suffixes to skip (case-insensitive)")
    download.set_defaults(func=download_command)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(level="DEBUG" if args.verbose else None)

    if not args.command:
        parser.print_help()
        return EXIT_FAILURE

    args.cancel_event = threading.Event()
    previous_handler = signal.signal(signal.SIGINT, make_cancel_handler(args.cancel_event))

    try:
        return args.func(args)
    except (BucketSyncError, FileNotFoundError) as e:
        logger.error(f"{args.command} failed: {e}")
        return EXIT_FAILURE
    except Exception as e:
        logger.error(f"{args.command} failed: {e}", exc_info=True)
        return EXIT_FAILURE
    finally:
        if previous_handler is not None:
            signal.signal(signal.SIGINT, previous_handler)


if __name__ == "__main__":
    sys.exit(main())
