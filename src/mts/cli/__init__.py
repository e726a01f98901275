"""Command line interface for MTS."""
