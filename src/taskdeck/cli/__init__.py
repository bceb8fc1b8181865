"""Command line interface for taskdeck."""
