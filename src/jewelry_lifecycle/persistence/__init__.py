from jewelry_lifecycle.persistence.event_log import EventKind, EventLog, EventRecord
from jewelry_lifecycle.persistence.state_store import StateStore

__all__ = ["EventKind", "EventLog", "EventRecord", "StateStore"]
