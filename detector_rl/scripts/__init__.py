"""Command-line scripts for evaluating trained agents."""
