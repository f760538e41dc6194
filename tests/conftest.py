"""Shared fixtures and an in-memory object store for the test suite."""

import tempfile
import threading
import time
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

from bucketsync.errors import BucketAlreadyExistsError, ObjectNotFoundError
from bucketsync.models import ObjectInfo
from bucketsync.storage import ObjectStore


class FakeObjectStore(ObjectStore):
    """
    Thread-safe in-memory ObjectStore.

    Records every call and the peak number of concurrent put_object calls.
    """

    def __init__(self, put_delay: float = 0.0):
        self.put_delay = put_delay
        self.buckets = set()
        self.objects: Dict[Tuple[str, str], Tuple[bytes, Dict[str, str]]] = {}
        self.put_calls: List[str] = []
        self.head_calls: List[str] = []
        self.create_calls = 0
        self.fail_keys = set()
        self.head_errors: Dict[str, Exception] = {}
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def head_bucket(self, bucket: str) -> bool:
        return bucket in self.buckets

    def create_bucket(self, bucket: str) -> None:
        with self._lock:
            self.create_calls += 1
            if bucket in self.buckets:
                raise BucketAlreadyExistsError(bucket)
            self.buckets.add(bucket)

    def put_object(self, bucket, key, local_path, metadata=None, cancel_event=None):
        with self._lock:
            self.put_calls.append(key)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.put_delay:
                time.sleep(self.put_delay)
            if key in self.fail_keys:
                raise ConnectionError(f"simulated network failure for {key}")
            data = Path(local_path).read_bytes()
            with self._lock:
                self.objects[(bucket, key)] = (data, dict(metadata or {}))
        finally:
            with self._lock:
                self.in_flight -= 1

    def get_object(self, bucket, key, local_path):
        if (bucket, key) not in self.objects:
            raise ObjectNotFoundError(bucket, key)
        data, metadata = self.objects[(bucket, key)]
        local_path = Path(local_path)
        local_path.parent.mkdir(parents=True, exist_ok=True)
        local_path.write_bytes(data)
        return dict(metadata)

    def head_object(self, bucket, key):
        with self._lock:
            self.head_calls.append(key)
        if key in self.head_errors:
            raise self.head_errors[key]
        if (bucket, key) not in self.objects:
            raise ObjectNotFoundError(bucket, key)
        return dict(self.objects[(bucket, key)][1])

    def list_objects(self, bucket, prefix=""):
        return [
            ObjectInfo(key=key, size=len(data))
            for (b, key), (data, _meta) in sorted(self.objects.items())
            if b == bucket and key.startswith(prefix)
        ]

    def metadata_for(self, bucket: str, key: str) -> Optional[Dict[str, str]]:
        entry = self.objects.get((bucket, key))
        return entry[1] if entry else None


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_tree(temp_dir):
    """root/a.txt = 'hello', root/b/c.txt = ''."""
    root = temp_dir / "root"
    (root / "b").mkdir(parents=True)
    (root / "a.txt").write_text("hello")
    (root / "b" / "c.txt").write_text("")
    return root


@pytest.fixture
def many_files(temp_dir):
    """A tree of 40 small files spread over subdirectories."""
    root = temp_dir / "many"
    files = []
    for i in range(40):
        subdir = root / f"dir_{i % 4}"
        subdir.mkdir(parents=True, exist_ok=True)
        path = subdir / f"file_{i}.txt"
        path.write_text(f"content {i}\n" * (i + 1))
        files.append(path)
    return root, files


@pytest.fixture
def fake_store():
    """An in-memory store with the test bucket already created."""
    store = FakeObjectStore()
    store.buckets.add("test-bucket")
    return store
