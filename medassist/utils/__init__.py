"""Shared utilities: structured logging and Result types."""
