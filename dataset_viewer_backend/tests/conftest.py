"""
Pytest configuration to ensure the application package (src/) is importable,
plus an in-memory object storage used in place of S3.

This adjusts sys.path so `from src.api.main import app` works when tests run
from the container root without an installed package.
"""
import io
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import pytest

# Compute the backend root that contains the 'src' directory
BACKEND_ROOT = Path(__file__).resolve().parents[1]

# Prepend backend root to sys.path if not already present
backend_root_str = str(BACKEND_ROOT)
if backend_root_str not in sys.path:
    sys.path.insert(0, backend_root_str)

from src.core.errors import ObjectNotFoundError  # noqa: E402
from src.storage.client import ListResult, ObjectSummary, StoredObject  # noqa: E402


class FakeObjectStorage:
    """ObjectStorage over a dict of bucket -> key -> (bytes, content_type, last_modified).

    Listing mimics list_objects_v2 first-page semantics: with a delimiter,
    keys are grouped into common prefixes one segment below ``prefix``; with
    max_keys, contents are truncated in lexicographic key order.
    """

    def __init__(self):
        self.objects: dict[str, dict[str, tuple]] = {}
        self.list_calls: list[tuple] = []
        self.fail_list = False
        self.fail_get: Optional[Exception] = None
        self.empty_body_keys: set[str] = set()

    def put(self, bucket, key, body=b"", content_type=None, last_modified=None):
        self.objects.setdefault(bucket, {})[key] = (body, content_type, last_modified or datetime(2025, 1, 1, tzinfo=timezone.utc))

    def list_objects(self, bucket, prefix, delimiter=None, max_keys=None):
        self.list_calls.append((bucket, prefix, delimiter, max_keys))
        if self.fail_list:
            raise RuntimeError("AccessDenied")
        keys = sorted(k for k in self.objects.get(bucket, {}) if k.startswith(prefix))
        prefixes: list[str] = []
        contents: list[ObjectSummary] = []
        for key in keys:
            rest = key[len(prefix):]
            if delimiter and delimiter in rest:
                common = prefix + rest.split(delimiter, 1)[0] + delimiter
                if common not in prefixes:
                    prefixes.append(common)
                continue
            contents.append(ObjectSummary(key=key, last_modified=self.objects[bucket][key][2]))
        if max_keys is not None:
            contents = contents[:max_keys]
        return ListResult(common_prefixes=prefixes, contents=contents)

    def get_object(self, bucket, key):
        if self.fail_get is not None:
            raise self.fail_get
        if key in self.empty_body_keys:
            return StoredObject(body=None)
        try:
            body, content_type, _ = self.objects[bucket][key]
        except KeyError:
            raise ObjectNotFoundError(f"Object not found: s3://{bucket}/{key}")
        return StoredObject(body=io.BytesIO(body), content_type=content_type, content_length=len(body))


@pytest.fixture
def storage():
    return FakeObjectStorage()
