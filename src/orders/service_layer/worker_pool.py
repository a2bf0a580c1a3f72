"""
Pool de workers borné pour les tâches de fond.

Politique d'admission d'une tâche :
1. moins de min_workers threads : un nouveau worker prend la tâche ;
2. sinon la tâche entre dans la file (capacité bornée) ;
3. file pleine : un worker supplémentaire est lancé, jusqu'à max_workers ;
4. sinon la tâche est rejetée et submit() retourne False.

Les workers supplémentaires s'arrêtent après keep_alive secondes
d'inactivité. Les threads sont créés à la demande, en daemon.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)

Task = Callable[[], object]

_STOP = object()


class BoundedWorkerPool:
    def __init__(
        self,
        min_workers: int = 2,
        max_workers: int = 5,
        queue_capacity: int = 100,
        keep_alive: float = 60.0,
        name: str = "notifications",
    ):
        self.min_workers = min_workers
        self.max_workers = max_workers
        self.keep_alive = keep_alive
        self.name = name
        self._queue: queue.Queue = queue.Queue(maxsize=queue_capacity)
        self._workers: set[threading.Thread] = set()
        self._lock = threading.Lock()
        self._counter = 0
        self._shutdown = False

    @property
    def worker_count(self) -> int:
        with self._lock:
            return len(self._workers)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def submit(self, task: Task) -> bool:
        """Planifie une tâche sans bloquer. Retourne False si elle est rejetée."""
        with self._lock:
            if self._shutdown:
                logger.warning("Pool %s arrêté : tâche rejetée", self.name)
                return False
            if len(self._workers) < self.min_workers:
                self._start_worker(task, core=True)
                return True
            try:
                self._queue.put_nowait(task)
                return True
            except queue.Full:
                pass
            if len(self._workers) < self.max_workers:
                self._start_worker(task, core=False)
                return True
        logger.warning(
            "Pool %s saturé (%d workers, file pleine) : tâche rejetée",
            self.name, self.max_workers,
        )
        return False

    def shutdown(self, wait: bool = True) -> None:
        """Refuse les nouvelles tâches ; les tâches déjà en file sont exécutées."""
        with self._lock:
            self._shutdown = True
            workers = list(self._workers)
        for _ in workers:
            self._queue.put(_STOP)
        if wait:
            for worker in workers:
                worker.join()

    def _start_worker(self, first_task: Task, core: bool) -> None:
        self._counter += 1
        worker = threading.Thread(
            target=self._work,
            args=(first_task, core),
            name=f"{self.name}-{self._counter}",
            daemon=True,
        )
        self._workers.add(worker)
        worker.start()

    def _work(self, first_task: Optional[Task], core: bool) -> None:
        task = first_task
        try:
            while True:
                if task is not None:
                    self._run(task)
                try:
                    task = self._queue.get(timeout=None if core else self.keep_alive)
                except queue.Empty:
                    return
                if task is _STOP:
                    return
        finally:
            with self._lock:
                self._workers.discard(threading.current_thread())

    def _run(self, task: Task) -> None:
        try:
            task()
        except Exception:
            logger.exception("Erreur dans une tâche du pool %s", self.name)
