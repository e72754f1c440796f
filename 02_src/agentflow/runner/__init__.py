"""Runner module."""

from .runner import IRunner, Runner, RunnerState

__all__ = ["IRunner", "Runner", "RunnerState"]
