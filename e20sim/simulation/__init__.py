"""Simulation package shim.

Exposes the command line entry point and report helpers at
`e20sim.simulation` so `from e20sim.simulation import main` works.
"""
from .cli import main
from .report import format_cache_config, format_log_entry, format_state

__all__ = ["main", "format_cache_config", "format_log_entry", "format_state"]
