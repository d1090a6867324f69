"""Logging, retry and console helpers."""
