from .event_store import EventStore

__all__ = ["EventStore"]
