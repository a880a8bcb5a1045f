"""Analysis service and command-line entrypoints."""
