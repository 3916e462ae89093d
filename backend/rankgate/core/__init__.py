"""Shared kernel: configuration, errors, logging, persistence and event plumbing."""
