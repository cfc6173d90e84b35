"""Built-in plugins shipped with ringside."""
