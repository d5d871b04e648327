import queue
import logging
import threading

logger = logging.getLogger(__name__)


def split_batches(items, size):
    """Partition items into consecutive lists of at most `size` elements."""
    if size < 1:
        raise ValueError("Batch size must be at least 1")
    items = list(items)
    return [items[i:i + size] for i in range(0, len(items), size)]


def run_concurrently(calls, label="task"):
    """
    Run each callable in its own thread and wait for all of them.

    Every call settles independently: an exception escaping one call is
    logged and its slot becomes None, the siblings keep running.

    Args:
        calls (list): Zero-argument callables.
        label (str): Name used in log messages.

    Returns:
        list: One result per call, in input order.
    """
    result_queue = queue.Queue()
    threads = []

    def run(index, call):
        try:
            result_queue.put((index, call()))
        except Exception as e:
            logger.exception(f"Unhandled error in {label} {index + 1}: {e}")
            result_queue.put((index, None))

    for index, call in enumerate(calls):
        t = threading.Thread(target=run, args=(index, call), daemon=True)
        t.start()
        threads.append(t)

    for t in threads:
        t.join()

    results = [None] * len(threads)
    while not result_queue.empty():
        index, value = result_queue.get()
        results[index] = value
    return results
