"""Public interface definitions for all external collaborators.

Every collaborator the cache and coordinator depend on is accessed through
the abstract base classes in this package.  Concrete adapters live in
``animebrowse/providers/`` and are injected by ``animebrowse.main.build_context``.

CONCRETE PROVIDER MAP:
    Interface                  ->  Concrete implementations
    ---------------------------------------------------------------------
    IKeyValueStore             ->  MemoryKeyValueStore, SQLiteKeyValueStore
    ITransport                 ->  HttpxTransport
    ILifecycleObserver         ->  LifecycleTracker (animebrowse.pipeline)
"""

from animebrowse.interfaces.kv_store import IKeyValueStore
from animebrowse.interfaces.lifecycle_observer import ILifecycleObserver
from animebrowse.interfaces.transport import CancellationToken, ITransport, TransportResponse

__all__ = [
    "CancellationToken",
    "IKeyValueStore",
    "ILifecycleObserver",
    "ITransport",
    "TransportResponse",
]
