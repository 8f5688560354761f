"""Global sparse assembly."""
