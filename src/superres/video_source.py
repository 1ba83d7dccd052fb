import cv2

from superres.errors import VideoOpenError


def fourcc_code(value):
    """Accept an integer FourCC or a four character string such as ``"mp4v"``."""
    if isinstance(value, str):
        if len(value) != 4:
            raise ValueError(f"FourCC must have 4 characters, got {value!r}")
        return cv2.VideoWriter_fourcc(*value)
    return int(value)


class VideoSource:
    """Frame-at-a-time reader over cv2.VideoCapture."""

    def __init__(self, path):
        self.path = path
        self.cap = cv2.VideoCapture(path)
        if self.cap.isOpened():
            # Keep decoder queueing to a single frame.
            self.cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)

    def is_opened(self):
        return self.cap.isOpened()

    @property
    def frame_width(self):
        return int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH))

    @property
    def frame_height(self):
        return int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT))

    @property
    def fps(self):
        return self.cap.get(cv2.CAP_PROP_FPS)

    @property
    def fourcc(self):
        return int(self.cap.get(cv2.CAP_PROP_FOURCC))

    def next_frame(self):
        """Next decoded frame, or None at end of stream."""
        ret, frame = self.cap.read()
        if not ret or frame is None or frame.size == 0:
            return None
        return frame

    def release(self):
        self.cap.release()


class VideoSink:
    def __init__(self):
        self.writer = None
        self.size = None

    def open(self, path, fourcc, fps, size):
        writer = cv2.VideoWriter(path, fourcc_code(fourcc), fps, tuple(size), True)
        if not writer.isOpened():
            writer.release()
            return False
        self.writer = writer
        self.size = tuple(size)
        return True

    def write_frame(self, frame):
        if self.writer is None:
            raise VideoOpenError("Video sink is not open")
        self.writer.write(frame)

    def release(self):
        if self.writer is not None:
            self.writer.release()
            self.writer = None
