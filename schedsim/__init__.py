"""Discrete-event CPU/IO scheduling simulator, scheduling policies and task trace generators."""

__version__ = "0.1.0"