"""
Thread helpers used by a watch session.

- PeriodicWorker runs a function every `interval` seconds until stopped.
- WorkerGroup tracks the background threads of a session so they can all be
  stopped and joined on teardown.

Threads cannot be killed in Python, so every thread registered with a
WorkerGroup is expected to provide a cooperative stop() method.
"""

import logging
import threading

logger = logging.getLogger(__name__)


class PeriodicWorker(threading.Thread):
    """
    A thread that runs a worker function periodically every `interval` seconds.
    """

    def __init__(self, worker_fn, interval, *args, name=None, **kwargs):
        """
        Initialize the periodic worker thread.

        Args:
            worker_fn (callable): The function to run periodically.
            interval (float): Time in seconds between each call.
            *args: Positional arguments passed to worker_fn.
            name (str, optional): Thread name.
            **kwargs: Keyword arguments passed to worker_fn.
        """
        super().__init__(name=name, daemon=True)
        self.worker_fn = worker_fn
        self.interval = interval
        self.args = args
        self.kwargs = kwargs
        self.stop_event = threading.Event()

    def run(self):
        logger.debug("%s started with interval: %s seconds", self.name, self.interval)
        while not self.stop_event.is_set():
            try:
                self.worker_fn(*self.args, **self.kwargs)
            except Exception as e:
                logger.exception("Exception in periodic worker %s: %s", self.name, e)
            # Exit early if stop_event is set during the wait.
            if self.stop_event.wait(self.interval):
                break
        logger.debug("%s stopped.", self.name)

    def stop(self):
        self.stop_event.set()


def spawn_periodic_worker(worker_fn, interval, *args, name=None, **kwargs):
    """
    Start a PeriodicWorker and return it.

    Args:
        worker_fn (callable): Function to execute periodically.
        interval (float): Time interval in seconds between executions.

    Returns:
        PeriodicWorker: The running worker thread.
    """
    worker = PeriodicWorker(worker_fn, interval, *args, name=name, **kwargs)
    worker.start()
    return worker


class WorkerGroup:
    """
    The background threads belonging to one watch session.

    Attributes:
        threads (list): Registered threads, in registration order.
    """

    def __init__(self):
        self.threads = []

    def register(self, thread):
        """
        Register a thread with the group.

        Raises:
            ValueError: If thread is not a threading.Thread or has no stop() method.
        """
        if not isinstance(thread, threading.Thread):
            raise ValueError("Only threading.Thread instances can be registered.")
        if not callable(getattr(thread, "stop", None)):
            raise ValueError(f"Thread {thread.name} does not have a stop() method.")
        self.threads.append(thread)
        logger.debug("Registered thread: %s", thread.name)

    def get_all_statuses(self):
        """
        Returns:
            dict: Thread name -> {"is_alive": bool, "daemon": bool, "id": int}.
        """
        return {
            str(thread.name): {
                "is_alive": bool(thread.is_alive()),
                "daemon": bool(thread.daemon),
                "id": thread.ident,
            }
            for thread in self.threads
        }

    def stop_and_join_all(self, timeout=None):
        """
        Stop every thread, then wait for each of them to finish.

        Args:
            timeout (float, optional): Seconds to wait for each thread.
        """
        for thread in self.threads:
            logger.debug("Stopping thread: %s", thread.name)
            thread.stop()
        for thread in self.threads:
            if thread.is_alive():
                thread.join(timeout)
            if thread.is_alive():
                logger.warning("Thread %s did not stop within %s seconds", thread.name, timeout)
