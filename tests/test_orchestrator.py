from unittest.mock import patch

from pricectl.constructs import Price, Product
from pricectl.orchestrator import PricingOrchestrator
from pricectl.state import STATE_FILE_NAME, StateManager
from pricectl.utils.errors import StateError


class TestPricingOrchestrator:
    def test_deploy_persists_state(self, client, stack, tmp_path):
        product = Product(stack, "Pro", name="Pro")
        Price(stack, "Monthly", product=product, currency="usd", unit_amount=1000)

        orchestrator = PricingOrchestrator(client, StateManager(tmp_path))
        result = orchestrator.deploy(stack.synth())

        assert not result.has_errors()
        reloaded = StateManager(tmp_path)
        assert reloaded.get_resource("Billing", "Pro").physical_id == result.deployed[0].physical_id
        assert reloaded.get_resource("Billing", "Monthly").kind == "Price"

    def test_state_saved_even_when_entries_fail(self, client, stack, tmp_path):
        Product(stack, "Pro", name="Pro")
        Product(stack, "Broken", name="Broken")
        client.products.create.side_effect = [{"id": "prod_1"}, RuntimeError("boom")]

        result = PricingOrchestrator(client, StateManager(tmp_path)).deploy(stack.synth())

        assert [e.id for e in result.errors] == ["Broken"]
        assert StateManager(tmp_path).get_resource("Billing", "Pro").physical_id == "prod_1"

    def test_state_save_failure_does_not_fail_deploy(self, client, stack, tmp_path):
        Product(stack, "Pro", name="Pro")
        state_manager = StateManager(tmp_path)
        orchestrator = PricingOrchestrator(client, state_manager)

        with patch.object(state_manager, "save", side_effect=StateError("disk full")):
            result = orchestrator.deploy(stack.synth())

        assert result.deployed[0].status == "created"
        assert not (tmp_path / STATE_FILE_NAME).exists()

    def test_destroy_removes_stack_from_state(self, client, stack, tmp_path):
        Product(stack, "Pro", name="Pro")
        orchestrator = PricingOrchestrator(client, StateManager(tmp_path))
        orchestrator.deploy(stack.synth())

        result = orchestrator.destroy(stack.synth())

        assert result.summary() == {"deleted": 1}
        assert StateManager(tmp_path).get_stack("Billing") is None

    def test_diff_does_not_write_state(self, client, stack, tmp_path):
        Product(stack, "Pro", name="Pro")

        report = PricingOrchestrator(client, StateManager(tmp_path)).diff(stack.synth())

        assert report.has_changes()
        assert not (tmp_path / STATE_FILE_NAME).exists()
