"""Command line interface for the weekly picks odds subsystem."""
