"""Command-line interface for the assistant core runtime."""
