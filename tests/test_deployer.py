import stripe

from pricectl.constructs import Coupon, EntitlementFeature, Meter, Price, Product
from pricectl.core.manifest import ResourceManifestEntry
from pricectl.orchestrator import Deployer, Resolver
from pricectl.state import StateManager
from pricectl.utils.stripe_client import to_plain


def _tagged(client, service, logical_id):
    for obj in client.objects(service).values():
        if (obj.get("metadata") or {}).get("pricectl_id") == logical_id:
            return obj
    return None


class TestDeploy:
    def test_creates_product_with_identity_tags(self, client, stack, state_manager):
        Product(stack, "Pro", name="Pro Plan", metadata={"tier": "gold"})

        result = Deployer(client, state_manager).deploy(stack.synth())

        assert not result.has_errors()
        assert [(d.id, d.status) for d in result.deployed] == [("Pro", "created")]
        client.products.create.assert_called_once_with({
            "name": "Pro Plan",
            "active": True,
            "metadata": {"tier": "gold", "pricectl_id": "Pro", "pricectl_path": "Billing/Pro"},
        })

        state = state_manager.get_resource("Billing", "Pro")
        assert state.physical_id == result.deployed[0].physical_id
        assert state.kind == "Product"
        assert state.path == "Billing/Pro"
        assert state.properties_hash == StateManager.compute_properties_hash(
            {"name": "Pro Plan", "active": True, "metadata": {"tier": "gold"}}
        )

    def test_second_deploy_skips_unchanged_product(self, client, stack, state_manager):
        Product(stack, "Pro", name="Pro Plan")
        deployer = Deployer(client, state_manager)
        deployer.deploy(stack.synth())

        result = deployer.deploy(stack.synth())

        assert result.deployed[0].status == "unchanged"
        client.products.update.assert_not_called()
        assert client.products.create.call_count == 1

    def test_product_updated_when_short_circuit_disabled(self, client, stack, state_manager):
        Product(stack, "Pro", name="Pro Plan")
        Deployer(client, state_manager).deploy(stack.synth())

        result = Deployer(client, state_manager, skip_unchanged_products=False).deploy(stack.synth())

        assert result.deployed[0].status == "updated"
        client.products.update.assert_called_once()

    def test_product_updated_without_state(self, client, stack):
        client.fakes["products"].add({
            "id": "prod_1", "name": "Pro Plan", "active": True, "metadata": {"pricectl_id": "Pro"},
        })
        Product(stack, "Pro", name="Pro Plan")

        result = Deployer(client).deploy(stack.synth())

        assert result.deployed[0].status == "updated"
        assert result.deployed[0].physical_id == "prod_1"

    def test_price_references_product_created_in_same_run(self, client, stack, state_manager):
        product = Product(stack, "Pro", name="Pro")
        Price(stack, "Monthly", product=product, currency="usd", unit_amount=1999,
              recurring={"interval": "month"})

        result = Deployer(client, state_manager).deploy(stack.synth())

        product_id, price_id = (d.physical_id for d in result.deployed)
        assert client.objects("prices")[price_id]["product"] == product_id
        # The manifest itself keeps the logical reference
        assert stack.synth().get_resource("Monthly").properties["product"] == "Pro"

    def test_unchanged_price_is_left_alone(self, client, stack):
        client.fakes["prices"].add({
            "id": "price_1", "product": "prod_1", "currency": "usd",
            "unit_amount": 1000, "unit_amount_decimal": "1000", "active": True,
            "billing_scheme": "per_unit", "tax_behavior": "unspecified",
            "metadata": {"pricectl_id": "Monthly"},
        })
        Price(stack, "Monthly", product="prod_1", currency="usd", unit_amount=1000)

        result = Deployer(client).deploy(stack.synth())

        assert result.deployed[0].status == "unchanged"
        assert result.deployed[0].physical_id == "price_1"
        client.prices.create.assert_not_called()

    def test_changed_price_is_replaced(self, client, stack):
        client.fakes["prices"].add({
            "id": "price_1", "product": "prod_1", "currency": "usd",
            "unit_amount": 1000, "active": True, "metadata": {"pricectl_id": "Monthly"},
        })
        Price(stack, "Monthly", product="prod_1", currency="usd", unit_amount=1500)

        result = Deployer(client).deploy(stack.synth())

        deployed = result.deployed[0]
        assert deployed.status == "created"
        assert deployed.physical_id != "price_1"
        assert client.objects("prices")["price_1"]["active"] is False
        assert client.objects("prices")[deployed.physical_id]["unit_amount"] == 1500
        client.prices.update.assert_called_once_with("price_1", {"active": False})

    def test_coupon_created_with_logical_id(self, client, stack):
        Coupon(stack, "LAUNCH20", duration="once", percent_off=20)

        result = Deployer(client).deploy(stack.synth())

        assert result.deployed[0].physical_id == "LAUNCH20"
        params = client.coupons.create.call_args[0][0]
        assert params["id"] == "LAUNCH20"
        assert params["metadata"]["pricectl_id"] == "LAUNCH20"

    def test_existing_coupon_is_never_updated(self, client, stack):
        client.fakes["coupons"].add({"id": "LAUNCH20", "duration": "once", "percent_off": 10})
        Coupon(stack, "LAUNCH20", duration="once", percent_off=20)

        result = Deployer(client).deploy(stack.synth())

        assert result.deployed[0].status == "unchanged"
        client.coupons.create.assert_not_called()
        client.coupons.update.assert_not_called()

    def test_coupon_products_resolved(self, client, stack):
        product = Product(stack, "Pro", name="Pro")
        Coupon(stack, "PROONLY", duration="forever", percent_off=10, applies_to_products=[product])

        result = Deployer(client).deploy(stack.synth())

        product_id = result.deployed[0].physical_id
        assert client.objects("coupons")["PROONLY"]["applies_to"] == {"products": [product_id]}

    def test_feature_updates_name_only(self, client, stack):
        client.fakes["features"].add({
            "id": "feat_1", "name": "SSO", "lookup_key": "sso", "active": True, "metadata": {},
        })
        EntitlementFeature(stack, "Sso", name="Single sign-on", lookup_key="sso")

        result = Deployer(client).deploy(stack.synth())

        assert result.deployed[0].status == "updated"
        object_id, params = client.features.update.call_args[0]
        assert object_id == "feat_1"
        assert params["name"] == "Single sign-on"
        assert "lookup_key" not in params

    def test_meter_create_then_update_display_name(self, client, stack):
        Meter(stack, "ApiCalls", display_name="API calls", event_name="api_call",
              default_aggregation={"formula": "count"})
        deployer = Deployer(client)
        created = deployer.deploy(stack.synth()).deployed[0]

        client.fakes["meters"].objects[created.physical_id]["display_name"] = "Old"
        updated = deployer.deploy(stack.synth()).deployed[0]

        assert created.status == "created"
        assert updated.status == "updated"
        client.meters.update.assert_called_once_with(created.physical_id, {"display_name": "API calls"})

    def test_failure_is_isolated_to_one_entry(self, client, stack, state_manager):
        Product(stack, "Broken", name="Broken")
        Product(stack, "Fine", name="Fine")
        Coupon(stack, "LAUNCH", duration="once", percent_off=5)
        client.products.create.side_effect = [RuntimeError("card_declined"), {"id": "prod_ok"}]
        progress = []

        result = Deployer(client, state_manager).deploy(
            stack.synth(), progress_callback=lambda rid, status: progress.append((rid, status))
        )

        assert [e.id for e in result.errors] == ["Broken"]
        assert "card_declined" in result.errors[0].error
        assert [d.id for d in result.deployed] == ["Fine", "LAUNCH"]
        assert progress == [("Broken", "failed"), ("Fine", "created"), ("LAUNCH", "created")]
        assert state_manager.get_resource("Billing", "Broken") is None
        assert result.summary() == {"created": 2}

    def test_unknown_kind_is_an_entry_error(self, client, stack):
        manifest = stack.synth()
        manifest.resources.append(ResourceManifestEntry(id="Inv", path="Billing/Inv", kind="Invoice"))

        result = Deployer(client).deploy(manifest)

        assert result.errors[0].id == "Inv"
        assert "Unknown resource kind" in result.errors[0].error


class TestDestroy:
    def test_destroys_in_reverse_order_and_clears_state(self, client, stack, state_manager):
        product = Product(stack, "Pro", name="Pro")
        Price(stack, "Monthly", product=product, currency="usd", unit_amount=1000)
        Coupon(stack, "LAUNCH", duration="once", percent_off=5)
        deployer = Deployer(client, state_manager)
        deployer.deploy(stack.synth())

        result = deployer.destroy(stack.synth())

        assert [(d.id, d.status) for d in result.destroyed] == [
            ("LAUNCH", "deleted"),
            ("Monthly", "deactivated"),
            ("Pro", "deleted"),
        ]
        assert state_manager.get_stack("Billing") is None
        assert _tagged(client, "products", "Pro") is None
        assert _tagged(client, "prices", "Monthly")["active"] is False

    def test_missing_resources_are_skipped(self, client, stack, state_manager):
        Product(stack, "Pro", name="Pro")
        Meter(stack, "ApiCalls", display_name="API calls", event_name="api_call",
              default_aggregation={"formula": "count"})

        result = Deployer(client, state_manager).destroy(stack.synth())

        assert result.destroyed == []
        assert not result.has_errors()
        client.products.delete.assert_not_called()

    def test_skipped_entries_still_report_progress(self, client, stack):
        client.fakes["products"].add({"id": "prod_1", "name": "Pro", "metadata": {"pricectl_id": "Pro"}})
        Product(stack, "Pro", name="Pro")
        Product(stack, "Gone", name="Gone")
        progress = []

        result = Deployer(client).destroy(
            stack.synth(), progress_callback=lambda rid, status: progress.append((rid, status))
        )

        assert progress == [("Gone", "skipped"), ("Pro", "deleted")]
        assert [d.id for d in result.destroyed] == ["Pro"]

    def test_inactive_meter_and_feature_are_not_touched(self, client, stack):
        client.fakes["meters"].add({"id": "mtr_1", "event_name": "api_call", "status": "inactive"})
        client.fakes["features"].add({"id": "feat_1", "lookup_key": "sso", "active": False})
        Meter(stack, "ApiCalls", display_name="API calls", event_name="api_call",
              default_aggregation={"formula": "count"})
        EntitlementFeature(stack, "Sso", name="SSO", lookup_key="sso")

        result = Deployer(client).destroy(stack.synth())

        assert result.destroyed == []
        client.meters.deactivate.assert_not_called()
        client.features.update.assert_not_called()

    def test_meter_and_feature_are_deactivated(self, client, stack):
        client.fakes["meters"].add({"id": "mtr_1", "event_name": "api_call", "status": "active"})
        client.fakes["features"].add({"id": "feat_1", "lookup_key": "sso", "active": True})
        Meter(stack, "ApiCalls", display_name="API calls", event_name="api_call",
              default_aggregation={"formula": "count"})
        EntitlementFeature(stack, "Sso", name="SSO", lookup_key="sso")

        result = Deployer(client).destroy(stack.synth())

        assert result.summary() == {"deactivated": 2}
        client.meters.deactivate.assert_called_once_with("mtr_1")
        client.features.update.assert_called_once_with("feat_1", {"active": False})

    def test_destroy_error_keeps_state_entry(self, client, stack, state_manager):
        Product(stack, "Pro", name="Pro")
        deployer = Deployer(client, state_manager)
        deployer.deploy(stack.synth())
        client.products.delete.side_effect = RuntimeError("network down")

        result = deployer.destroy(stack.synth())

        assert result.has_errors()
        assert state_manager.get_resource("Billing", "Pro") is not None


class TestDecimalPrices:
    def _add_sdk_price(self, client):
        remote = stripe.Price.construct_from({
            "id": "price_1", "object": "price", "product": "prod_1", "currency": "usd",
            "unit_amount": None, "unit_amount_decimal": "12.5", "active": True,
            "billing_scheme": "per_unit", "tax_behavior": "unspecified",
            "metadata": {"pricectl_id": "Metered", "pricectl_path": "Billing/Metered"},
        }, "sk_test_123")
        client.fakes["prices"].add(to_plain(remote))

    def test_decimal_only_price_is_unchanged(self, client, stack):
        self._add_sdk_price(client)
        Price(stack, "Metered", product="prod_1", currency="usd", unit_amount_decimal="12.5")

        result = Deployer(client).deploy(stack.synth())

        assert result.deployed[0].status == "unchanged"
        assert result.deployed[0].physical_id == "price_1"
        client.prices.create.assert_not_called()
        client.prices.update.assert_not_called()

    def test_decimal_only_price_diffs_cleanly(self, client, stack):
        self._add_sdk_price(client)
        Price(stack, "Metered", product="prod_1", currency="usd", unit_amount_decimal="12.5")

        report = Resolver(client).diff_manifest(stack.synth())

        assert report.errors == []
        assert report.diffs[0].action == "no_change"
