"""Client core - Transport, client-held store, field updates and activity ledger"""
from .transport import PortalTransport
from .store import RequestStore
from .ledger import ActivityLedger
from .field_update import FieldUpdatePipeline

__all__ = [
    "PortalTransport",
    "RequestStore",
    "ActivityLedger",
    "FieldUpdatePipeline",
]
