"""Commands of the treepath CLI."""
