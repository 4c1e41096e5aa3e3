import json
from unittest.mock import patch

import pytest

from pricectl.state import STATE_FILE_NAME, ResourceState, StateManager
from pricectl.utils.errors import StateError


def _resource(logical_id="Pro", physical_id="prod_1"):
    return ResourceState(
        logical_id=logical_id,
        physical_id=physical_id,
        kind="Product",
        path=f"Billing/{logical_id}",
        properties_hash="abc123",
    )


class TestPropertiesHash:
    def test_key_order_does_not_matter(self):
        a = {"name": "Pro", "metadata": {"a": "1", "b": "2"}}
        b = {"metadata": {"b": "2", "a": "1"}, "name": "Pro"}

        assert StateManager.compute_properties_hash(a) == StateManager.compute_properties_hash(b)

    def test_list_order_matters(self):
        a = {"images": ["x", "y"]}
        b = {"images": ["y", "x"]}

        assert StateManager.compute_properties_hash(a) != StateManager.compute_properties_hash(b)

    def test_nested_leaf_change_changes_digest(self):
        a = {"name": "Pro", "metadata": {"a": "1"}}
        b = {"name": "Pro", "metadata": {"a": "2"}}

        assert StateManager.compute_properties_hash(a) != StateManager.compute_properties_hash(b)

    def test_deep_list_leaf_change_changes_digest(self):
        a = {"tiers": [{"up_to": 10, "unit_amount": 500}]}
        b = {"tiers": [{"up_to": 10, "unit_amount": 400}]}

        assert StateManager.compute_properties_hash(a) != StateManager.compute_properties_hash(b)

    def test_digest_is_16_hex_chars(self):
        digest = StateManager.compute_properties_hash({"name": "Pro"})

        assert len(digest) == 16
        int(digest, 16)


class TestStateManager:
    def test_missing_file_is_empty_state(self, tmp_path):
        manager = StateManager(tmp_path)

        assert manager.get_resource("Billing", "Pro") is None
        assert manager.file_path == tmp_path.resolve() / STATE_FILE_NAME

    def test_save_and_reload(self, tmp_path):
        manager = StateManager(tmp_path)
        manager.set_resource("Billing", _resource())
        manager.save()

        reloaded = StateManager(tmp_path)
        resource = reloaded.get_resource("Billing", "Pro")

        assert resource.physical_id == "prod_1"
        assert resource.properties_hash == "abc123"
        assert not (tmp_path / (STATE_FILE_NAME + ".tmp")).exists()

    def test_saved_file_layout(self, tmp_path):
        manager = StateManager(tmp_path)
        manager.set_resource("Billing", _resource())
        manager.save()

        data = json.loads((tmp_path / STATE_FILE_NAME).read_text())

        assert data["version"] == 1
        entry = data["stacks"]["Billing"]["resources"]["Pro"]
        assert entry["physicalId"] == "prod_1"
        assert entry["logicalId"] == "Pro"
        assert "lastDeployedAt" in entry

    def test_save_creates_missing_directory(self, tmp_path):
        manager = StateManager(tmp_path / "nested" / "state")
        manager.set_resource("Billing", _resource())
        manager.save()

        assert (tmp_path / "nested" / "state" / STATE_FILE_NAME).exists()

    def test_legacy_type_key_is_read(self, tmp_path):
        (tmp_path / STATE_FILE_NAME).write_text(json.dumps({
            "version": 1,
            "stacks": {"Billing": {"resources": {"Pro": {
                "logicalId": "Pro",
                "physicalId": "prod_1",
                "type": "Product",
                "path": "Billing/Pro",
                "lastDeployedAt": "2024-01-01T00:00:00Z",
                "propertiesHash": "abc123",
            }}}},
        }))

        assert StateManager(tmp_path).get_resource("Billing", "Pro").kind == "Product"

    @pytest.mark.parametrize("content", [
        "{not json",
        json.dumps({"version": 2, "stacks": {}}),
        json.dumps([1, 2, 3]),
        json.dumps({"version": 1, "stacks": {"Billing": {"resources": {"Pro": {"logicalId": "Pro"}}}}}),
    ])
    def test_unusable_file_falls_back_to_empty(self, tmp_path, content):
        (tmp_path / STATE_FILE_NAME).write_text(content)

        manager = StateManager(tmp_path)

        assert manager.get_stack("Billing") is None

    def test_remove_resource_prunes_empty_stack(self, tmp_path):
        manager = StateManager(tmp_path)
        manager.set_resource("Billing", _resource("Pro", "prod_1"))
        manager.set_resource("Billing", _resource("Basic", "prod_2"))

        manager.remove_resource("Billing", "Pro")
        assert manager.get_stack("Billing") is not None

        manager.remove_resource("Billing", "Basic")
        assert manager.get_stack("Billing") is None

        manager.remove_resource("Other", "Pro")

    def test_remove_stack(self, tmp_path):
        manager = StateManager(tmp_path)
        manager.set_resource("Billing", _resource())

        manager.remove_stack("Billing")

        assert manager.get_resource("Billing", "Pro") is None

    def test_save_failure_raises_state_error(self, tmp_path):
        manager = StateManager(tmp_path)

        with patch("pricectl.state.manager.open", side_effect=PermissionError("read-only")):
            with pytest.raises(StateError):
                manager.save()
