# aisle_router/app/build.py
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from aisle_router.app.hooks import NoopHooks, PipelineHooks
from aisle_router.app.planner import PlannedRoute, RoutePlanner, Stop, select_stops
from aisle_router.config.models import NavigatorModel
from aisle_router.domain.entities.grid import DeferredLayout, Grid
from aisle_router.domain.layout.buffer import WallBufferer
from aisle_router.domain.layout.extract import SegmentExtractor
from aisle_router.domain.layout.raster import GridRasterizer
from aisle_router.domain.routing.matrix import DistanceMatrixBuilder
from aisle_router.domain.routing.simplify import PathSimplifier
from aisle_router.io.pipeline_logging import PipelineLogging
from aisle_router.io.recorder import Recorder
from aisle_router.runtime.registries import make_optimizer, make_pathfinder


@dataclass
class Navigator:
    config: NavigatorModel
    hooks: PipelineHooks
    extractor: SegmentExtractor
    rasterizer: GridRasterizer
    bufferer: WallBufferer
    planner: RoutePlanner

    def load_layout(self, entities: Iterable) -> Grid | DeferredLayout:
        """
        Entities -> buffered walkable grid. An oversized plan is downscaled when
        ``raster.downscale_max_side`` is set, otherwise returned as a DeferredLayout.
        """
        extraction = self.extractor.extract(entities)
        layout = self.rasterizer.rasterize(extraction.segments, extraction.bounds)
        if isinstance(layout, DeferredLayout):
            max_side = self.config.raster.downscale_max_side
            if max_side is None:
                return layout
            layout = self.rasterizer.downscale(layout, max_side=max_side)
        return self.bufferer.apply(layout, self.config.buffer.radius)

    def plan(
        self, grid: Grid, stops: Sequence[Stop], categories: Iterable[str] | None = None
    ) -> PlannedRoute:
        if categories is not None:
            stops = select_stops(stops, categories)
        return self.planner.plan(grid, stops)


def build(
    cfg: NavigatorModel | Mapping,
    *,
    hooks: PipelineHooks | None = None,
    recorder: Recorder | None = None,
    use_logging: bool = True,
    cancel=None,
) -> Navigator:
    # 0) Validate config
    model = cfg if isinstance(cfg, NavigatorModel) else NavigatorModel.model_validate(cfg)

    # 1) Hooks
    if hooks is None:
        hooks = (
            PipelineLogging(
                run_id=model.name,
                recorder=recorder,
                level=model.log.level,
                debug=model.log.debug,
                sample_every=model.log.sample_every,
            )
            if use_logging
            else NoopHooks()
        )

    # 2) Layout stages
    r = model.raster
    rasterizer = GridRasterizer(
        margin=r.margin,
        max_cells=r.max_cells,
        batch_size=r.batch_size,
        progress_every=r.progress_every,
        hooks=hooks,
    )

    # 3) Routing stages (inject deps explicitly)
    deps = {"hooks": hooks, "cancel": cancel}
    pathfinder = make_pathfinder(model.pathfinder, deps=deps)
    matrix_builder = DistanceMatrixBuilder(pathfinder, workers=model.matrix.workers, hooks=hooks)
    optimizer = make_optimizer(model.optimizer, deps=deps)
    planner = RoutePlanner(
        matrix_builder=matrix_builder,
        optimizer=optimizer,
        simplifier=PathSimplifier(),
        on_unreachable=model.planner.on_unreachable,
        simplify=model.planner.simplify,
        hooks=hooks,
    )

    return Navigator(
        config=model,
        hooks=hooks,
        extractor=SegmentExtractor(),
        rasterizer=rasterizer,
        bufferer=WallBufferer(hooks=hooks),
        planner=planner,
    )
