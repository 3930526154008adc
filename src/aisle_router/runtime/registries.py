# runtime/registries.py
from collections.abc import Callable
from typing import Any

from aisle_router.app.hooks import NoopHooks, PipelineHooks
from aisle_router.app.protocols import Pathfinder
from aisle_router.config.models import (
    OptimizerAutoModel,
    OptimizerBruteForceModel,
    OptimizerHeldKarpModel,
    OptimizerNearestNeighborModel,
    OptimizerTwoOptModel,
    OptimizerUnion,
    PathfinderAStarModel,
    PathfinderUnion,
)
from aisle_router.domain.routing.astar import AStarPathfinder
from aisle_router.domain.routing.tsp import (
    BruteForceSolver,
    HeldKarpSolver,
    NearestNeighborSolver,
    RouteOptimizer,
    TwoOptSolver,
)

PathfinderFactory = Callable[[PathfinderUnion, dict], Pathfinder]
OptimizerFactory = Callable[[OptimizerUnion, dict], RouteOptimizer]

_pathfinder_registry: dict[str, PathfinderFactory] = {}
_optimizer_registry: dict[str, OptimizerFactory] = {}


def _hooks(deps: dict) -> PipelineHooks:
    return deps.get("hooks") or NoopHooks()


# ------------------- Pathfinders ---------------------------


def register_pathfinder(kind: str):
    def deco(fn: PathfinderFactory):
        _pathfinder_registry[kind] = fn
        return fn

    return deco


def make_pathfinder(cfg: PathfinderUnion, *, deps: dict | None = None) -> Pathfinder:
    try:
        factory = _pathfinder_registry[cfg.kind]
    except KeyError:
        raise ValueError(f"Unknown pathfinder kind {cfg.kind!r}")
    return factory(cfg, deps or {})


@register_pathfinder("astar")
def _make_astar(cfg: PathfinderAStarModel, deps):
    return AStarPathfinder(corner_rule=cfg.corner_rule)


# ------------------- Route optimizers ---------------------------


def register_optimizer(kind: str):
    def deco(fn: OptimizerFactory):
        _optimizer_registry[kind] = fn
        return fn

    return deco


def make_optimizer(cfg: OptimizerUnion, *, deps: dict | None = None) -> RouteOptimizer:
    """deps may carry 'hooks' (PipelineHooks) and 'cancel' (threading.Event) for 2-opt."""
    try:
        factory = _optimizer_registry[cfg.kind]
    except KeyError:
        raise ValueError(f"Unknown optimizer kind {cfg.kind!r}")
    return factory(cfg, deps or {})


def _two_opt(settings: Any, deps: dict) -> TwoOptSolver:
    return TwoOptSolver(
        max_iterations=settings.max_iterations,
        deadline_s=settings.deadline_s,
        cancel=deps.get("cancel"),
        hooks=_hooks(deps),
    )


@register_optimizer("auto")
def _make_auto(cfg: OptimizerAutoModel, deps):
    return RouteOptimizer(
        brute_force_max=cfg.brute_force_max,
        held_karp_max=cfg.held_karp_max,
        two_opt=_two_opt(cfg.two_opt, deps),
        hooks=_hooks(deps),
    )


@register_optimizer("brute_force")
def _make_brute_force(cfg: OptimizerBruteForceModel, deps):
    return RouteOptimizer(solver=BruteForceSolver(), hooks=_hooks(deps))


@register_optimizer("held_karp")
def _make_held_karp(cfg: OptimizerHeldKarpModel, deps):
    return RouteOptimizer(solver=HeldKarpSolver(max_n=cfg.max_n), hooks=_hooks(deps))


@register_optimizer("nearest_neighbor")
def _make_nearest_neighbor(cfg: OptimizerNearestNeighborModel, deps):
    return RouteOptimizer(solver=NearestNeighborSolver(), hooks=_hooks(deps))


@register_optimizer("two_opt")
def _make_two_opt(cfg: OptimizerTwoOptModel, deps):
    return RouteOptimizer(solver=_two_opt(cfg, deps), hooks=_hooks(deps))
