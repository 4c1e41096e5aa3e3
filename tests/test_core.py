import json

import pytest

from pricectl.constructs import Price, Product
from pricectl.core import Construct, Stack, StackManifest
from pricectl.core.manifest import ResourceKind
from pricectl.core.resource import RESOURCE_METADATA_KEY, Resource
from pricectl.utils.errors import (
    DuplicateIdentifierError,
    EmptyIdentifierError,
    MissingStackAncestorError,
    ResourceNotFinalizedError,
)


class TestConstruct:
    def test_path_joins_ids_from_root(self):
        root = Construct(None, "App")
        group = Construct(root, "Plans")
        leaf = Construct(group, "Pro")

        assert root.path == "App"
        assert leaf.path == "App/Plans/Pro"
        assert str(leaf) == "App/Plans/Pro"
        assert leaf.scope is group

    def test_duplicate_sibling_id_rejected(self):
        root = Construct(None, "App")
        Construct(root, "Pro")

        with pytest.raises(DuplicateIdentifierError) as exc_info:
            Construct(root, "Pro")

        assert "Pro" in exc_info.value.message
        assert len(root.children) == 1

    def test_same_id_allowed_under_different_scopes(self):
        root = Construct(None, "App")
        a = Construct(root, "A")
        b = Construct(root, "B")

        assert Construct(a, "Pro").path == "App/A/Pro"
        assert Construct(b, "Pro").path == "App/B/Pro"

    @pytest.mark.parametrize("bad_id", ["", "   "])
    def test_empty_id_rejected(self, bad_id):
        with pytest.raises(EmptyIdentifierError):
            Construct(None, bad_id)

    def test_find_all_is_preorder(self):
        root = Construct(None, "App")
        a = Construct(root, "A")
        a1 = Construct(a, "A1")
        b = Construct(root, "B")

        assert root.find_all() == [root, a, a1, b]
        assert root.find_child("B") is b
        assert root.find_child("missing") is None

    def test_metadata(self):
        construct = Construct(None, "App")
        construct.add_metadata("owner", "billing")

        assert construct.get_metadata("owner") == "billing"
        assert construct.get_metadata("missing") is None

    def test_children_is_a_copy(self):
        root = Construct(None, "App")
        Construct(root, "A")
        root.children.clear()

        assert len(root.children) == 1


class TestResource:
    def test_resource_outside_stack_rejected(self):
        root = Construct(None, "App")

        with pytest.raises(MissingStackAncestorError):
            Product(root, "Pro", name="Pro")

    def test_resource_nested_under_group_finds_stack(self, stack):
        group = Construct(stack, "Plans")
        product = Product(group, "Pro", name="Pro")

        assert product.stack is stack
        assert product.path == "Billing/Plans/Pro"

    def test_finalized_resource_records_metadata(self, stack):
        product = Product(stack, "Pro", name="Pro Plan")

        assert product.finalized
        assert product.get_metadata(RESOURCE_METADATA_KEY) == {
            "kind": "Product",
            "properties": {"name": "Pro Plan", "active": True},
        }


class TestStack:
    def test_synth_lists_resources_in_declaration_order(self, stack):
        product = Product(stack, "Pro", name="Pro")
        group = Construct(stack, "Prices")
        Price(group, "Monthly", product=product, currency="usd", unit_amount=1000)
        Product(stack, "Basic", name="Basic")

        manifest = stack.synth()

        assert manifest.stack_id == "Billing"
        assert [entry.id for entry in manifest.resources] == ["Pro", "Monthly", "Basic"]
        assert [entry.path for entry in manifest.resources] == [
            "Billing/Pro",
            "Billing/Prices/Monthly",
            "Billing/Basic",
        ]
        assert manifest.get_resource("Monthly").properties["product"] == "Pro"

    def test_synth_is_repeatable(self, stack):
        Product(stack, "Pro", name="Pro")

        assert stack.synth().to_dict() == stack.synth().to_dict()

    def test_synth_rejects_unfinalized_resource(self, stack):
        class Draft(Resource):
            kind = ResourceKind.PRODUCT

            def synthesize_properties(self):
                return {"name": "Draft"}

        Product(stack, "Pro", name="Pro")
        draft = Draft(stack, "Draft")

        assert not draft.finalized
        with pytest.raises(ResourceNotFinalizedError):
            stack.synth()

    def test_manifest_carries_stack_settings(self):
        stack = Stack(None, "Billing", api_version="2024-06-20", description="Plans", tags={"team": "growth"})

        manifest = stack.synth()

        assert manifest.api_version == "2024-06-20"
        assert manifest.description == "Plans"
        assert manifest.tags == {"team": "growth"}
        assert manifest.resources == []

    def test_manifest_written_with_camel_case_keys(self, stack, tmp_path):
        Product(stack, "Pro", name="Pro", physical_id="prod_existing")

        path = stack.synth().write(tmp_path / "out" / "manifest.json")
        data = json.loads(path.read_text())

        assert data["stackId"] == "Billing"
        assert data["resources"][0]["physicalId"] == "prod_existing"
        assert data["resources"][0]["kind"] == "Product"
        assert "description" not in data

        loaded = StackManifest.load(path)
        assert loaded == stack.synth()
