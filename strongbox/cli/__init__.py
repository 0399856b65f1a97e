"""Command line interface for strongbox."""
