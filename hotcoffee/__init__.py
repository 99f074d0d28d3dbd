"""Coffee shop order fulfilment and ingredient inventory service."""

__version__ = "0.1.0"
