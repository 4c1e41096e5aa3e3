"""Loading the user's app file and wiring up the deploy machinery."""

import importlib.util
import sys
from pathlib import Path
from typing import Optional

from pricectl.config.parser import Config
from pricectl.core.stack import Stack
from pricectl.orchestrator.orchestrator import PricingOrchestrator
from pricectl.state.manager import StateManager
from pricectl.utils.errors import ConfigurationError
from pricectl.utils.logging import get_logger
from pricectl.utils.retry import RetryStrategy
from pricectl.utils.stripe_client import StripeClient

logger = get_logger(__name__)

APP_EXPORTS = ('stack', 'app')


def load_app(app_path: str) -> Stack:
    """Import a Python file and return the stack it exports.

    The module must bind a Stack (or anything with a ``synth()`` method) to
    ``stack`` or ``app``.

    Raises:
        ConfigurationError: If the file is missing or exports no stack
    """
    path = Path(app_path).resolve()
    if not path.exists():
        raise ConfigurationError(
            f"App file not found: {path}",
            suggestions=[
                "Pass the stack definition with --app",
                "Set app in pricectl.yaml",
            ],
        )

    spec = importlib.util.spec_from_file_location(f"pricectl_app_{path.stem}", path)
    if spec is None or spec.loader is None:
        raise ConfigurationError(f"Cannot import app file: {path}")

    module = importlib.util.module_from_spec(spec)
    # Let the app import siblings next to it
    sys.path.insert(0, str(path.parent))
    try:
        spec.loader.exec_module(module)
    finally:
        sys.path.remove(str(path.parent))

    for name in APP_EXPORTS:
        stack = getattr(module, name, None)
        if stack is not None and callable(getattr(stack, 'synth', None)):
            logger.debug(f"Loaded stack from {path} ({name})")
            return stack

    raise ConfigurationError(
        f"{path} does not export a stack",
        suggestions=["Assign your Stack to a module-level variable named 'stack'"],
    )


def create_orchestrator(
    config: Config,
    stack: Stack,
    state_dir: Optional[str] = None
) -> PricingOrchestrator:
    """Build a Stripe client, state store and orchestrator for a stack."""
    settings = config.settings
    api_key = config.resolve_api_key(getattr(stack, 'api_key', None))

    client = StripeClient(
        api_key=api_key,
        api_version=getattr(stack, 'api_version', None) or settings.api_version,
        retry_strategy=RetryStrategy(max_retries=settings.max_retries),
    )
    state_manager = StateManager(state_dir or settings.state_dir)

    return PricingOrchestrator(
        client,
        state_manager,
        skip_unchanged_products=settings.skip_unchanged_products,
    )
