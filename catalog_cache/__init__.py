"""Request-deduplicating TTL cache for the streaming catalog."""

__version__ = "0.1.0"
