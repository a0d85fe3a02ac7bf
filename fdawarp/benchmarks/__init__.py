"""Synthetic data generators and the benchmark runner."""
