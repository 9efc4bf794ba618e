"""ton-watcher - TON account transaction notifications."""

__version__ = "0.1.0"
