"""Core enums, vocabulary tables, exceptions and small utilities."""
