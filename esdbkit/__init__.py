"""Data types for an event-store client: events, positions, metadata, filters, persistent subscriptions and errors."""

__version__ = "0.1.0"

__all__ = ["errors", "events", "filters", "metadata", "persistent", "positions"]