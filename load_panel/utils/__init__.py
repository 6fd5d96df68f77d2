"""Shared utilities for load-panel."""
