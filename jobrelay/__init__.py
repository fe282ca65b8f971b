"""HTTP relay that forwards job notifications to chat webhooks."""

__version__ = "0.1.0"
