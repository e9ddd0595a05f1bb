"""Protocol-agnostic load, stress, spike and endurance testing engine."""

__version__ = "0.1.0"
