"""Shared utilities: paths and logging setup."""
