# io/pipeline_logging.py
import json
import logging
import sys

from aisle_router.app.hooks import NoopHooks
from aisle_router.io.recorder import Recorder
from aisle_router.io.route_events import LayoutDeferredEvent, RoutePlannedEvent, StopDroppedEvent


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def default_json_logger(name="aisle_router", level="INFO"):
    logger = logging.getLogger(name)
    if not logger.handlers:
        h = logging.StreamHandler(sys.stdout)
        h.setFormatter(JsonFormatter())
        logger.addHandler(h)
        logger.setLevel(level)
    return logger


class PipelineLogging(NoopHooks):
    """
    One place to shape and emit structured logs for the layout and routing stages.
    Progress-type records (raster batches, 2-opt sweeps) are DEBUG-only and sampled.
    """

    def __init__(
        self,
        run_id: str = "local",
        level: str = "INFO",
        debug: bool = False,
        sample_every: int = 1,
        logger: logging.Logger | None = None,
        recorder: Recorder | None = None,
    ):
        self.run_id, self.debug, self.sample_every = run_id, debug, max(1, sample_every)
        self.recorder = recorder
        self.log = logger or default_json_logger(level=level)
        self._progress = 0

    # --------------- Helpers -----------------------------

    def _emit(self, level: str, msg: str, **extra):
        self.log.log(getattr(logging, level), msg, extra={"extra": {"run_id": self.run_id, **extra}})

    def _sampled(self) -> bool:
        self._progress += 1
        return self.debug and (self._progress % self.sample_every) == 0

    def _record(self, ev):
        if self.recorder:
            self.recorder.emit(ev)

    # --------------------------------------------------------

    # layout

    def raster_start(self, *, width, height, segments, **extra):
        self._emit("INFO", "raster_start", width=width, height=height, segments=segments, **extra)

    def raster_progress(self, *, done, total):
        if self._sampled():
            self._emit("DEBUG", "raster_progress", done=done, total=total)

    def raster_deferred(self, *, width, height, max_cells):
        self._emit("WARNING", "raster_deferred", width=width, height=height, max_cells=max_cells)
        self._record(LayoutDeferredEvent(self.run_id, "LayoutDeferred", width, height, max_cells))

    def raster_end(self, *, width, height, occupied, **extra):
        self._emit("INFO", "raster_end", width=width, height=height, occupied=occupied, **extra)

    def buffer_applied(self, *, radius, occupied_before, occupied_after):
        self._emit(
            "INFO",
            "buffer_applied",
            radius=radius,
            occupied_before=occupied_before,
            occupied_after=occupied_after,
        )

    # routing

    def matrix_start(self, *, n, workers):
        self._emit("INFO", "matrix_start", n=n, workers=workers)

    def matrix_end(self, *, n, unreachable, ms):
        level = "WARNING" if unreachable else "INFO"
        self._emit(level, "matrix_end", n=n, unreachable=unreachable, ms=round(ms, 3))

    def solve_start(self, *, solver, n):
        self._emit("INFO", "solve_start", solver=solver, n=n)

    def sweep(self, *, iteration, length):
        if self._sampled():
            self._emit("DEBUG", "two_opt_sweep", iteration=iteration, length=length)

    def solve_end(self, *, solver, n, length, ms, **extra):
        self._emit("INFO", "solve_end", solver=solver, n=n, length=length, ms=round(ms, 3), **extra)

    # planning

    def stop_dropped(self, *, stop_id, reason):
        self._emit("WARNING", "stop_dropped", stop_id=stop_id, reason=reason)
        self._record(StopDroppedEvent(self.run_id, "StopDropped", str(stop_id), reason))

    def route_planned(self, *, stops, total_distance, solver):
        self._emit("INFO", "route_planned", stops=stops, total_distance=total_distance, solver=solver)
        self._record(
            RoutePlannedEvent(self.run_id, "RoutePlanned", [str(s) for s in stops], total_distance, solver)
        )

    def error(self, *, reason: str, **extra):
        self._emit("ERROR", "pipeline_error", reason=reason, **extra)
