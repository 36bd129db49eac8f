import threading
import time
import unittest

from texstore.utils.background_worker import BackgroundWorker


class TestBackgroundWorker(unittest.TestCase):

    def setUp(self):
        self.worker = BackgroundWorker(name="TestWorker")

    def tearDown(self):
        self.worker.shutdown()

    def test_runs_in_single_daemon_thread(self):
        """All tasks run on the same daemon thread, never the caller's."""
        idents = [self.worker.submit(lambda: threading.current_thread()).result() for _ in range(5)]
        self.assertEqual(len({t.ident for t in idents}), 1)
        self.assertTrue(idents[0].daemon)
        self.assertNotEqual(idents[0].ident, threading.get_ident())

    def test_fifo_order(self):
        order = []
        futures = [self.worker.submit(order.append, i) for i in range(50)]
        for f in futures:
            f.result()
        self.assertEqual(order, list(range(50)))

    def test_exception_reaches_caller(self):
        def boom():
            raise ValueError("bad texture")

        future = self.worker.submit(boom)
        with self.assertRaises(ValueError):
            future.result()
        # Worker keeps going after a failed task
        self.assertEqual(self.worker.submit(lambda: 42).result(), 42)

    def test_shutdown_drains_pending_tasks(self):
        done = []
        gate = threading.Event()
        self.worker.submit(gate.wait)
        futures = [self.worker.submit(done.append, i) for i in range(3)]
        gate.set()
        self.worker.shutdown()
        self.assertEqual(done, [0, 1, 2])
        self.assertTrue(all(f.done() for f in futures))
        self.assertFalse(self.worker.is_alive())

    def test_submit_after_shutdown(self):
        self.worker.shutdown()
        with self.assertRaises(RuntimeError):
            self.worker.submit(print)

    def test_tasks_never_overlap(self):
        running = []
        overlaps = []

        def task():
            running.append(1)
            if len(running) > 1:
                overlaps.append(True)
            time.sleep(0.001)
            running.pop()

        threads = [
            threading.Thread(target=lambda: [self.worker.submit(task).result() for _ in range(10)])
            for _ in range(4)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(overlaps, [])

    def test_fatal_task_resolves_every_future(self):
        """A task raising SystemExit must not leave callers blocked."""
        def fatal():
            raise SystemExit(3)

        gate = threading.Event()
        self.worker.submit(gate.wait)
        doomed = self.worker.submit(fatal)
        queued = self.worker.submit(lambda: 42)
        gate.set()

        self.assertIsInstance(doomed.exception(timeout=5), SystemExit)
        with self.assertRaises(RuntimeError):
            queued.result(timeout=5)
        with self.assertRaises(RuntimeError):
            self.worker.submit(print)


if __name__ == '__main__':
    unittest.main()
