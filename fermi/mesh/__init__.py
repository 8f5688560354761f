"""Nodes, elements and structured meshes."""
