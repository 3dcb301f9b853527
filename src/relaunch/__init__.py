"""
relaunch - crash and session reconciliation across process restarts

Decides at every process start whether the previous run exited normally,
crashed, or was killed for memory pressure, finalizes the persisted session
accordingly, and mirrors the diagnostic scope into the crash handler.
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
