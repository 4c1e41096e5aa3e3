"""Allow running pricectl with ``python -m pricectl``."""

from pricectl.cli.main import main

main()
