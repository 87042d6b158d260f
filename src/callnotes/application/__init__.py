"""Run configuration, error types and the generation pipeline."""
