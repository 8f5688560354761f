"""Plotting of meshes and flux fields."""
