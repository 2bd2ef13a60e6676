from .event_store import InMemoryEventStore

__all__ = ["InMemoryEventStore"]
