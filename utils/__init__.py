"""Shared utilities: key-value persistence, activity logs, configuration and logging helpers."""
