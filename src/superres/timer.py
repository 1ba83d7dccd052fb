import time


class FPSTimer:
    """Rolling frames-per-second over roughly one second windows."""

    def __init__(self):
        self.start = time.perf_counter()
        self.last = self.start
        self.frames = 0
        self.total = 0
        self.fps = 0.0

    def update(self):
        self.frames += 1
        self.total += 1
        now = time.perf_counter()
        if now - self.last >= 1.0:
            self.fps = self.frames / (now - self.last)
            self.frames = 0
            self.last = now
        return self.fps

    def average(self):
        elapsed = time.perf_counter() - self.start
        return self.total / elapsed if elapsed > 0 else 0.0
