"""CLI module for whopbot."""
