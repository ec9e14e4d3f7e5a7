import gc
import threading
import time

from services import locks
from services.locks import invoice_lock


def test_lock_is_reentrant_for_the_same_thread():
     with invoice_lock(1):
          with invoice_lock(1):
               assert 1 in locks._invoice_locks


def test_unused_locks_are_dropped_from_the_registry():
     for invoice_id in range(100, 150):
          with invoice_lock(invoice_id):
               pass
     gc.collect()

     assert not any(100 <= key < 150 for key in locks._invoice_locks.keys())


def test_same_invoice_is_serialised_across_threads():
     events = []

     def worker(name):
          with invoice_lock(7):
               events.append(f"{name}-in")
               time.sleep(0.05)
               events.append(f"{name}-out")

     threads = [threading.Thread(target=worker, args=(n,)) for n in ("a", "b")]
     for t in threads:
          t.start()
     for t in threads:
          t.join()

     # No interleaving: each worker leaves before the other enters
     assert events[0][0] == events[1][0]
     assert events[2][0] == events[3][0]


def test_different_invoices_do_not_block_each_other():
     entered = threading.Event()

     def other():
          with invoice_lock(9):
               entered.set()

     with invoice_lock(8):
          thread = threading.Thread(target=other)
          thread.start()
          assert entered.wait(timeout=2)
          thread.join()
