"""Command-line surface for runbench."""
