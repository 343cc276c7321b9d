"""Investment portfolio tracking core: purchase ledgers, quotes and migrations."""

__version__ = "0.1.0"
