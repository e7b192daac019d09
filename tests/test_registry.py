from unittest.mock import MagicMock, patch

import pytest

from app.config import RegistryConfig
from app.models.model_record import ModelDraft
from app.storage import registry as registry_module
from app.storage.base import BackendMode, LocalStoreError, RegistryUnavailableError, RemoteStoreError
from app.storage.local_store import JsonRecordStore
from app.storage.registry import RegistryFacade
from conftest import make_record

URL = "https://example.com/chair.glb"


# Startup backend selection

def test_initialize_without_bucket_is_local(local_store) -> None:
    facade = RegistryFacade(local_store)

    with patch.object(registry_module, "connect_firestore") as connect:
        mode = facade.initialize(RegistryConfig(service_account_json='{"type": "service_account"}'))

    assert mode == BackendMode.LOCAL
    connect.assert_not_called()


def test_initialize_with_malformed_credentials_is_local(local_store) -> None:
    facade = RegistryFacade(local_store)

    mode = facade.initialize(RegistryConfig(service_account_json="{not json", storage_bucket="bucket"))

    assert mode == BackendMode.LOCAL
    assert facade.remote is None


def test_initialize_with_missing_credential_file_is_local(local_store, tmp_path) -> None:
    facade = RegistryFacade(local_store)
    config = RegistryConfig(
        service_account_path=str(tmp_path / "missing.json"),
        storage_bucket="bucket",
    )

    assert facade.initialize(config) == BackendMode.LOCAL


def test_initialize_never_raises_on_sdk_failure(local_store) -> None:
    facade = RegistryFacade(local_store)

    with patch.object(registry_module, "connect_firestore", side_effect=RuntimeError("auth")):
        mode = facade.initialize(RegistryConfig(storage_bucket="bucket"))

    assert mode == BackendMode.LOCAL


def test_initialize_success_is_remote(local_store, remote_store) -> None:
    facade = RegistryFacade(local_store)

    with patch.object(registry_module, "connect_firestore", return_value=remote_store):
        mode = facade.initialize(RegistryConfig(storage_bucket="bucket"))

    assert mode == BackendMode.REMOTE
    assert facade.supports_binary_upload is True


def test_credential_order_prefers_inline_blob(tmp_path) -> None:
    config = RegistryConfig(
        service_account_json='{"type": "service_account"}',
        service_account_path=str(tmp_path / "sa.json"),
        storage_bucket="bucket",
    )

    with patch.object(registry_module.credentials, "Certificate") as certificate:
        registry_module._load_credential(config)

    certificate.assert_called_once_with({"type": "service_account"})


def test_connect_firestore_builds_both_handles() -> None:
    config = RegistryConfig(storage_bucket="bucket", collection="scans", remote_timeout=3.0)

    with patch.object(registry_module.firebase_admin, "get_app", side_effect=ValueError), \
            patch.object(registry_module.firebase_admin, "initialize_app") as initialize_app, \
            patch.object(registry_module.firestore, "client") as client, \
            patch.object(registry_module.storage, "bucket") as bucket:
        store = registry_module.connect_firestore(config)

    initialize_app.assert_called_once_with(
        None, {"storageBucket": "bucket"}, name=registry_module.FIREBASE_APP_NAME
    )
    assert store.db is client.return_value
    assert store.bucket is bucket.return_value
    assert store.collection == "scans"
    assert store.timeout == 3.0


def test_from_config_uses_registry_file(registry_path) -> None:
    facade = RegistryFacade.from_config(RegistryConfig(registry_file=registry_path))

    assert facade.mode == BackendMode.LOCAL
    assert isinstance(facade.local, JsonRecordStore)
    assert facade.local.path == registry_path


# Local mode

def test_create_assigns_id_and_timestamp(local_registry) -> None:
    record = local_registry.create(ModelDraft(modelUrl=URL, fileName=URL))

    assert record.id
    assert record.active is True
    assert record.createdAt.endswith("Z")
    assert local_registry.get(record.id) == record


def test_created_ids_are_unique(local_registry) -> None:
    ids = {local_registry.create(ModelDraft(modelUrl=URL)).id for _ in range(5)}

    assert len(ids) == 5


def test_local_list_includes_new_record_as_active(local_registry) -> None:
    record = local_registry.create(ModelDraft(modelUrl=URL))

    models = local_registry.list()

    assert [m.id for m in models] == [record.id]
    assert models[0].active is True


def test_get_unknown_id_returns_none(remote_registry) -> None:
    assert remote_registry.get("nonexistent") is None


def test_set_active_is_idempotent(local_registry) -> None:
    record = local_registry.create(ModelDraft(modelUrl=URL))

    first = local_registry.set_active(record.id, True)
    second = local_registry.set_active(record.id, True)

    assert first == second
    assert local_registry.get(record.id) == first


def test_set_active_unknown_returns_none(local_registry) -> None:
    assert local_registry.set_active("nonexistent", False) is None


def test_local_failure_without_remote_is_unavailable() -> None:
    local = MagicMock()
    local.get.side_effect = LocalStoreError("disk")
    facade = RegistryFacade(local)

    with pytest.raises(RegistryUnavailableError):
        facade.get("model-1")


# Remote mode

def test_create_writes_remote_only(remote_registry, remote_store, local_store) -> None:
    record = remote_registry.create(ModelDraft(modelUrl=URL))

    assert record.id in remote_store.docs
    assert local_store.get(record.id) is None


def test_create_falls_back_to_local_on_remote_write_error(remote_registry, remote_store, local_store) -> None:
    remote_store.fail_writes = True

    record = remote_registry.create(ModelDraft(modelUrl=URL))

    assert local_store.get(record.id) is not None
    assert remote_store.docs == {}


def test_get_falls_back_when_remote_read_fails(remote_registry, remote_store, local_store) -> None:
    local_store.set("local-only", make_record("local-only"))
    remote_store.fail_reads = True

    record = remote_registry.get("local-only")

    assert record.modelUrl == "https://example.com/a.glb"


def test_get_remote_miss_consults_local(remote_registry, local_store) -> None:
    local_store.set("local-only", make_record("local-only"))

    assert remote_registry.get("local-only") is not None


def test_get_remote_miss_without_local_consultation(local_store, remote_store) -> None:
    local_store.set("local-only", make_record("local-only"))
    facade = RegistryFacade(local_store, remote_store, local_fallback_on_miss=False)

    assert facade.get("local-only") is None


def test_get_prefers_remote_copy(remote_registry, remote_store, local_store) -> None:
    remote_store.docs["model-1"] = make_record(url="https://example.com/remote.glb")
    local_store.set("model-1", make_record(url="https://example.com/local.glb"))

    assert remote_registry.get("model-1").modelUrl == "https://example.com/remote.glb"


def test_both_backends_failing_is_unavailable(remote_store) -> None:
    local = MagicMock()
    local.get.side_effect = LocalStoreError("disk")
    remote_store.fail_reads = True
    facade = RegistryFacade(local, remote_store)

    with pytest.raises(RegistryUnavailableError):
        facade.get("model-1")


def test_empty_remote_list_uses_local(remote_registry, local_store) -> None:
    local_store.set("local-only", make_record("local-only"))

    assert [m.id for m in remote_registry.list()] == ["local-only"]


def test_remote_list_shadows_local_when_not_empty(remote_registry, remote_store, local_store) -> None:
    remote_store.docs["remote-1"] = make_record("remote-1")
    local_store.set("local-only", make_record("local-only"))

    assert [m.id for m in remote_registry.list()] == ["remote-1"]


def test_list_falls_back_when_remote_fails(remote_registry, remote_store, local_store) -> None:
    local_store.set("local-only", make_record("local-only"))
    remote_store.fail_reads = True

    assert [m.id for m in remote_registry.list()] == ["local-only"]


def test_list_tolerates_local_error_after_remote_success(remote_store) -> None:
    local = MagicMock()
    local.list_all.side_effect = LocalStoreError("disk")
    facade = RegistryFacade(local, remote_store)

    assert facade.list() == []


def test_list_with_both_backends_failing_is_unavailable(remote_store) -> None:
    local = MagicMock()
    local.list_all.side_effect = LocalStoreError("disk")
    remote_store.fail_reads = True
    facade = RegistryFacade(local, remote_store)

    with pytest.raises(RegistryUnavailableError):
        facade.list()


def test_set_active_updates_remote_copy(remote_registry, remote_store, local_store) -> None:
    remote_store.docs["model-1"] = make_record()

    record = remote_registry.set_active("model-1", False)

    assert record.active is False
    assert remote_store.docs["model-1"].active is False
    assert local_store.get("model-1") is None


def test_set_active_falls_back_to_local_write(remote_registry, remote_store, local_store) -> None:
    remote_store.docs["model-1"] = make_record()
    remote_store.fail_writes = True

    remote_registry.set_active("model-1", False)

    assert local_store.get("model-1").active is False


def test_set_active_on_local_copy_in_remote_mode(remote_registry, remote_store, local_store) -> None:
    local_store.set("local-only", make_record("local-only"))

    remote_registry.set_active("local-only", False)

    assert local_store.get("local-only").active is False
    assert "local-only" not in remote_store.docs


def test_store_binary_requires_capable_backend(local_registry) -> None:
    assert local_registry.supports_binary_upload is False
    with pytest.raises(RegistryUnavailableError):
        local_registry.store_binary(b"data", "chair.glb")


def test_create_without_local_consultation_does_not_write_local(local_store, remote_store) -> None:
    remote_store.fail_writes = True
    facade = RegistryFacade(local_store, remote_store, local_fallback_on_miss=False)

    with pytest.raises(RegistryUnavailableError):
        facade.create(ModelDraft(modelUrl=URL))

    assert local_store.list_all() == []


def test_remote_document_without_url_falls_back_to_local(remote_registry, remote_store, local_store) -> None:
    local_store.set("model-1", make_record())
    remote_store.get = MagicMock(side_effect=RemoteStoreError("Malformed Firestore document model-1"))

    assert remote_registry.get("model-1").modelUrl == "https://example.com/a.glb"
