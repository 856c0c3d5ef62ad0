"""YAML-driven editor scenarios for pytest."""
