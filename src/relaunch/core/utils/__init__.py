"""Shared utilities for relaunch core (I/O, time, merging)."""
