"""Analytical benchmarks."""
