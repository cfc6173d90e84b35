"""Output rendering for CLI results."""
