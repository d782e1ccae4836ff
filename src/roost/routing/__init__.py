"""Controller routing."""
