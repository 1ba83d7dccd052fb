import logging

from superres.errors import ShapeMismatchError, VideoOpenError
from superres.timer import FPSTimer

logger = logging.getLogger(__name__)


class FrameStreamDriver:
    """Runs a pipeline over a frame source and writes to a frame sink.

    Frames are pulled, upscaled and written one at a time, so memory stays
    bounded by a single frame regardless of stream length and output order
    is input order.
    """

    def __init__(self, pipeline, timing_interval=120):
        self.pipeline = pipeline
        self.timing_interval = timing_interval

    def run(self, source, sink, output_path, fourcc=None):
        try:
            if not source.is_opened():
                raise VideoOpenError("Could not open the video.")
            self.pipeline.ensure_ready()

            scale = self.pipeline.scale
            size = (source.frame_width * scale, source.frame_height * scale)
            fourcc = source.fourcc if fourcc is None else fourcc
            if not sink.open(output_path, fourcc, source.fps, size):
                raise VideoOpenError(f"Could not open {output_path} for writing.")
            logger.info("Upscaling video x%d to %dx%d -> %s", scale, size[0], size[1], output_path)

            timer = FPSTimer()
            frames = 0
            while True:
                frame = source.next_frame()
                if frame is None:
                    break

                output = self.pipeline.upsample(frame)
                out_h, out_w = output.shape[:2]
                if (out_w, out_h) != size:
                    raise ShapeMismatchError(
                        f"Frame {frames} upscaled to {out_w}x{out_h}, sink expects {size[0]}x{size[1]}"
                    )
                sink.write_frame(output)
                frames += 1

                fps = timer.update()
                if self.timing_interval > 0 and frames % self.timing_interval == 0:
                    logger.info("[timing] frames=%d fps=%.2f", frames, fps)

            logger.info("Wrote %d frames (avg %.2f fps)", frames, timer.average())
            return frames
        finally:
            source.release()
            sink.release()
