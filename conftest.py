"""Repository-level pytest setup: keep engine logging quiet during tests."""

from loadengine.shared.logging import setup_logging

setup_logging("WARNING")
