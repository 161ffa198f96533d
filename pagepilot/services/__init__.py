"""Service layer: store adapters and dispatcher wiring."""
from pagepilot.services.dispatcher_service import DispatcherService
from pagepilot.services.record_store import RecordStore, TagResult
from pagepilot.services.style_store import StyleStore

__all__ = [
    "RecordStore",
    "TagResult",
    "StyleStore",
    "DispatcherService",
]
