"""Urban Walker offline-first shop client."""

from walker.cache import LocalCache
from walker.config import Settings, load_settings
from walker.merge import DisplayRecord, merge_listing
from walker.models import Purchase, PurchaseItem, Sneaker
from walker.reconciler import Reconciler, SyncReport
from walker.record import PURCHASES, SNEAKERS, Collection, Record
from walker.remote import HttpRemoteStore, RemoteError, RemoteRecord, RemoteStore
from walker.scheduler import SyncScheduler, default_scheduler

__all__ = [
    "Collection",
    "DisplayRecord",
    "HttpRemoteStore",
    "LocalCache",
    "PURCHASES",
    "Purchase",
    "PurchaseItem",
    "Reconciler",
    "Record",
    "RemoteError",
    "RemoteRecord",
    "RemoteStore",
    "SNEAKERS",
    "Settings",
    "Sneaker",
    "SyncReport",
    "SyncScheduler",
    "default_scheduler",
    "load_settings",
    "merge_listing",
]
