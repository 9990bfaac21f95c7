"""Command Center Ingest: spreadsheet ingestion and normalization engine.

The engine turns bill, budget and cash-flow workbooks into typed records.
Parsing is a pure function of the input bytes; see
`command_center.ingestion` for the public API.
"""

__all__ = [
    "__version__",
]

__version__ = "0.4.0"
