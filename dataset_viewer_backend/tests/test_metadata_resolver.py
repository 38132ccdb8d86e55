import json

import pytest

from src.core.errors import IncompatibleDatasetError, MetadataFetchError, UnsupportedVersionError
from src.services.byte_fetchers import DirectStorageFetcher
from src.services.metadata_resolver import (
    SUPPORTED_VERSIONS,
    MetadataResolver,
    VersionedUrlBuilder,
    resolve_s3_proxy_url,
)
from src.services.storage_proxy import StorageProxy

ROOT = "s3://bucket/datasets/"
FEATURES = {"observation.state": {"dtype": "float32", "shape": [6]}}


class DictFetcher:
    """ByteFetcher over a dict of path -> bytes; missing paths fail like a fetch error."""

    def __init__(self, files):
        self.files = files
        self.requested = []

    def fetch_bytes(self, path):
        self.requested.append(path)
        if path not in self.files:
            raise MetadataFetchError("Failed to fetch dataset info: 404")
        return self.files[path]


def _resolver(info, dataset_id="ds1", raw=None):
    body = raw if raw is not None else json.dumps(info).encode()
    fetcher = DictFetcher({f"{dataset_id}/meta/info.json": body})
    return MetadataResolver(fetcher, VersionedUrlBuilder(False, "https://hub.test/datasets")), fetcher


def test_supported_version_is_returned():
    resolver, fetcher = _resolver({"codebase_version": "v2.0", "features": FEATURES})
    assert resolver.get_dataset_version("ds1") == "v2.0"
    assert fetcher.requested == ["ds1/meta/info.json"]


def test_unsupported_version_message_names_version_and_supported_set():
    resolver, _ = _resolver({"codebase_version": "v1.0", "features": FEATURES})
    with pytest.raises(UnsupportedVersionError) as ei:
        resolver.get_dataset_version("ds1")
    msg = str(ei.value)
    assert "v1.0" in msg
    assert "v3.0, v2.1, v2.0" in msg
    assert "ds1" in msg
    assert ei.value.version == "v1.0"
    assert isinstance(ei.value, IncompatibleDatasetError)


@pytest.mark.parametrize("version", SUPPORTED_VERSIONS)
def test_every_supported_version_passes(version):
    resolver, _ = _resolver({"codebase_version": version, "features": FEATURES})
    assert resolver.get_dataset_version("ds1") == version


def test_missing_codebase_version():
    resolver, _ = _resolver({"features": FEATURES})
    with pytest.raises(IncompatibleDatasetError, match="codebase_version"):
        resolver.get_dataset_version("ds1")


def test_missing_features_is_incompatible_whatever_else_is_present():
    info = {
        "codebase_version": "v3.0",
        "total_episodes": 50,
        "total_frames": 10000,
        "total_tasks": 1,
        "fps": 30,
        "splits": {"train": "0:50"},
        "data_path": "data/chunk-{chunk_index:03d}/file-{file_index:03d}.parquet",
    }
    resolver, _ = _resolver(info)
    with pytest.raises(IncompatibleDatasetError) as ei:
        resolver.get_dataset_info("ds1")
    assert ei.value.dataset_id == "ds1"
    assert "features" in str(ei.value)


def test_empty_features_mapping_is_accepted():
    resolver, _ = _resolver({"codebase_version": "v2.0", "features": {}})
    assert resolver.get_dataset_version("ds1") == "v2.0"


@pytest.mark.parametrize("features", [None, "not-a-mapping"])
def test_null_or_non_mapping_features_is_incompatible(features):
    resolver, _ = _resolver({"codebase_version": "v2.0", "features": features})
    with pytest.raises(IncompatibleDatasetError):
        resolver.get_dataset_info("ds1")


def test_oddly_typed_descriptive_fields_do_not_block_version():
    info = {
        "codebase_version": "v3.0",
        "features": FEATURES,
        "robot_type": {"name": "so100"},
        "splits": {"train": ["0:50"]},
        "fps": "30",
        "total_episodes": "50",
        "chunks_size": None,
        "data_path": None,
    }
    resolver, _ = _resolver(info)
    assert resolver.get_dataset_version("ds1") == "v3.0"
    assert resolver.get_dataset_info("ds1").splits == {"train": ["0:50"]}


@pytest.mark.parametrize("version", [2.0, ["v2.0"]])
def test_non_string_codebase_version_is_unsupported(version):
    resolver, _ = _resolver({"codebase_version": version, "features": FEATURES})
    with pytest.raises(UnsupportedVersionError):
        resolver.get_dataset_version("ds1")


def test_invalid_json_is_incompatible():
    resolver, _ = _resolver(None, raw=b"<html>not json</html>")
    with pytest.raises(IncompatibleDatasetError, match="ds1 is not compatible"):
        resolver.get_dataset_info("ds1")


def test_non_object_document_is_incompatible():
    resolver, _ = _resolver(None, raw=b"[1, 2, 3]")
    with pytest.raises(IncompatibleDatasetError):
        resolver.get_dataset_info("ds1")


def test_fetch_failure_is_rewrapped():
    resolver = MetadataResolver(DictFetcher({}), VersionedUrlBuilder(False, "https://hub.test/datasets"))
    with pytest.raises(IncompatibleDatasetError, match="org/missing is not compatible") as ei:
        resolver.get_dataset_version("org/missing")
    assert isinstance(ei.value.__cause__, MetadataFetchError)


def test_info_passes_unknown_fields_through():
    resolver, _ = _resolver(
        {"codebase_version": "v2.1", "features": FEATURES, "fps": 30, "custom_field": {"k": 1}}
    )
    info = resolver.get_dataset_info("ds1")
    assert info.fps == 30
    assert info.features == FEATURES
    assert info.model_dump()["custom_field"] == {"k": 1}


def test_direct_storage_fetcher_reads_through_proxy(storage):
    info = {"codebase_version": "v3.0", "features": FEATURES}
    storage.put("bucket", "datasets/orgA/x/meta/info.json", json.dumps(info).encode(), "application/json")
    resolver = MetadataResolver(
        DirectStorageFetcher(StorageProxy(storage, ROOT, 1024)),
        VersionedUrlBuilder(False, "https://hub.test/datasets"),
    )
    assert resolver.get_dataset_version("orgA/x") == "v3.0"


def test_direct_storage_not_found_is_incompatible(storage):
    resolver = MetadataResolver(
        DirectStorageFetcher(StorageProxy(storage, ROOT, 1024)),
        VersionedUrlBuilder(False, "https://hub.test/datasets"),
    )
    with pytest.raises(IncompatibleDatasetError):
        resolver.get_dataset_version("orgA/absent")


def test_build_versioned_url_hub_mode():
    resolver = MetadataResolver(DictFetcher({}), VersionedUrlBuilder(True, "https://hub.test/datasets/"))
    url = resolver.build_versioned_url("orgA/x", "v3.0", "meta/episodes.jsonl")
    assert url == "https://hub.test/datasets/orgA/x/resolve/main/meta/episodes.jsonl"


def test_build_versioned_url_storage_mode_returns_marker():
    resolver = MetadataResolver(DictFetcher({}), VersionedUrlBuilder(False, "https://hub.test/datasets"))
    assert resolver.build_versioned_url("orgA/x", "v2.1", "data/file.parquet") == "s3-proxy:orgA/x/data/file.parquet"


def test_resolve_s3_proxy_url_rewrites_marker_for_clients():
    url = resolve_s3_proxy_url("s3-proxy:orgA/x/meta/info.json", "http://viewer.local:3000/")
    assert url == "http://viewer.local:3000/api/s3-proxy?path=orgA%2Fx%2Fmeta%2Finfo.json"


def test_resolve_s3_proxy_url_is_noop_on_server():
    assert resolve_s3_proxy_url("s3-proxy:orgA/x/meta/info.json", None) == "s3-proxy:orgA/x/meta/info.json"


def test_resolve_s3_proxy_url_is_idempotent():
    origin = "http://viewer.local:3000"
    once = resolve_s3_proxy_url("s3-proxy:orgA/x/a b.json", origin)
    assert resolve_s3_proxy_url(once, origin) == once
    hub = "https://hub.test/datasets/orgA/x/resolve/main/meta/info.json"
    assert resolve_s3_proxy_url(hub, origin) == hub
