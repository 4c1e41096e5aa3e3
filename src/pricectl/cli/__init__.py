"""Command line interface for pricectl."""
