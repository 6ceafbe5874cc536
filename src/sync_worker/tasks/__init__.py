"""Sync worker tasks."""
