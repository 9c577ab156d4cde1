"""Async streaming adapters that feed sensor samples into a pipeline."""
