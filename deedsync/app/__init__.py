"""Application composition root and command line entry point."""
