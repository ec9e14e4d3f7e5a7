"""
Per-invoice serialization.

Payment recording and adjustment approval both read an invoice's amounts and
write new values derived from them. Two of those running at once on the same
invoice would lose an update, so each runs while holding that invoice's lock.
Different invoices never contend.

The registry holds locks weakly: an invoice's lock lives only while some
thread is using or waiting on it.
"""
import weakref
from contextlib import contextmanager
from threading import Lock, RLock
from typing import Iterator

_registry_lock = Lock()
_invoice_locks: "weakref.WeakValueDictionary[int, RLock]" = weakref.WeakValueDictionary()


def _lock_for(invoice_id: int) -> RLock:
     with _registry_lock:
          lock = _invoice_locks.get(invoice_id)
          if lock is None:
               lock = RLock()
               _invoice_locks[invoice_id] = lock
          return lock


@contextmanager
def invoice_lock(invoice_id: int) -> Iterator[None]:
     """Hold the lock for one invoice for the duration of the block."""
     lock = _lock_for(invoice_id)
     with lock:
          yield
