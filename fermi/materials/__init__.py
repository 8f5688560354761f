"""Diffusion material constants."""
