"""Command line interface for ledgerkeep."""
