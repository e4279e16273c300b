"""Command-line interface for propledger."""
