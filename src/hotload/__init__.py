"""hotload - incremental hot-reload engine for long-running Python processes."""

__version__ = "0.1.0"
