"""State layer.

Holds the last observed revision snapshot per (store, category) and the
timestamp of the last poll attempt. Only the refresh scheduler mutates it.
"""

from confwatch.state.clock import PollClock
from confwatch.state.policy import SnapshotChange, classify
from confwatch.state.store import StateStore

__all__ = ["PollClock", "SnapshotChange", "StateStore", "classify"]
