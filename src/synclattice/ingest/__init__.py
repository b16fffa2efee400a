from synclattice.ingest.loader import EventLoadError, load_events, settings_for_events
from synclattice.ingest.scoring import measure_attention, to_network_records

__all__ = [
    "EventLoadError",
    "load_events",
    "measure_attention",
    "settings_for_events",
    "to_network_records",
]
