"""mbr-tui - interactive terminal client for Metabase."""

__version__ = "0.1.0"
