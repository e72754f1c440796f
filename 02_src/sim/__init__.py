"""SIM module."""

from .sim import SCENARIO, ISim, Sim

__all__ = ["ISim", "SCENARIO", "Sim"]
