# aisle_router/domain/routing/tsp.py
import logging
import math
import threading
import time
from dataclasses import dataclass
from itertools import permutations

import numpy as np

from aisle_router.app.hooks import NoopHooks, PipelineHooks
from aisle_router.app.protocols import TourSolver
from aisle_router.domain.errors import MalformedQueryError

log = logging.getLogger(__name__)

Tour = list[int]


def validate_matrix(dist) -> np.ndarray:
    d = np.asarray(dist, dtype=float)
    if d.ndim != 2 or d.shape[0] != d.shape[1]:
        raise MalformedQueryError(f"distance matrix must be square, got shape {d.shape}")
    if np.isnan(d).any():
        raise MalformedQueryError("distance matrix contains NaN")
    if (d < 0).any():
        raise MalformedQueryError("distance matrix contains negative entries")
    return d


def tour_length(order, dist) -> float:
    """Open-path length: sum of consecutive legs, no edge back to the start."""
    if len(order) < 2:
        return 0.0
    o = np.asarray(order, dtype=int)
    return float(np.asarray(dist, dtype=float)[o[:-1], o[1:]].sum())


def _middle(n: int, end: int | None) -> list[int]:
    return [i for i in range(1, n) if i != end]


def _tail(end: int | None) -> list[int]:
    return [] if end is None else [end]


class MatrixSolver(TourSolver):
    name = "base"

    def solve(self, dist, *, end: int | None = None) -> Tour:
        d = validate_matrix(dist)
        n = d.shape[0]
        if end is not None and not (0 < end < n):
            raise MalformedQueryError(f"end index {end} outside 1..{n - 1}")
        if n <= 1:
            return list(range(n))
        return self._solve(d, end)

    def _solve(self, d: np.ndarray, end: int | None) -> Tour:
        raise NotImplementedError


class BruteForceSolver(MatrixSolver):
    name = "brute_force"

    def _solve(self, d, end):
        mid, tail = _middle(d.shape[0], end), _tail(end)
        best, best_len = [0, *mid, *tail], math.inf
        for perm in permutations(mid):
            order = [0, *perm, *tail]
            length = tour_length(order, d)
            if length < best_len:
                best, best_len = order, length
        return best


class HeldKarpSolver(MatrixSolver):
    """
    Exact DP over (visited-subset bitmask, position):
        cost(mask, pos) = min_next d[pos][next] + cost(mask | next, next)
        cost(full, pos) = 0                  (or d[pos][end] when the end is pinned)
    Tables are dense arrays indexed by mask, filled from larger masks down.
    """

    name = "held_karp"

    def __init__(self, max_n: int = 20):
        self.max_n = max_n

    def _solve(self, d, end):
        n = d.shape[0]
        if n > self.max_n:
            raise MalformedQueryError(f"held_karp limited to {self.max_n} stops, got {n}")

        full = (1 << n) - 1
        if end is not None:
            full &= ~(1 << end)
        cost = np.full((1 << n, n), np.inf)
        nxt = np.full((1 << n, n), -1, dtype=np.int16)
        members = [i for i in range(n) if full >> i & 1]
        cost[full, members] = 0.0 if end is None else d[members, end]

        for mask in range(full - 1, 0, -1):
            if not mask & 1 or mask & ~full:
                continue
            here = np.array([i for i in members if mask >> i & 1])
            todo = np.array([i for i in members if not mask >> i & 1])
            grown = mask | (1 << todo)
            cand = d[np.ix_(here, todo)] + cost[grown, todo][None, :]
            k = np.argmin(cand, axis=1)
            cost[mask, here] = cand[np.arange(len(here)), k]
            nxt[mask, here] = todo[k]

        order, mask, pos = [0], 1, 0
        while mask != full:
            pos = int(nxt[mask, pos])
            order.append(pos)
            mask |= 1 << pos
        return order + _tail(end)


class NearestNeighborSolver(MatrixSolver):
    name = "nearest_neighbor"

    def _solve(self, d, end):
        order, cur = [0], 0
        remaining = _middle(d.shape[0], end)
        while remaining:
            # min() keeps the lowest index on ties and still picks one if all are inf
            cur = min(remaining, key=lambda j: d[cur, j])
            remaining.remove(cur)
            order.append(cur)
        return order + _tail(end)


class TwoOptSolver(MatrixSolver):
    """
    Nearest-neighbour start, then segment reversals kept only when they shorten
    the open path. Stops at the first local optimum, after ``max_iterations``
    sweeps (default n*n), at ``deadline_s`` seconds, or when ``cancel`` is set.
    """

    name = "two_opt"

    def __init__(
        self,
        *,
        max_iterations: int | None = None,
        deadline_s: float | None = None,
        cancel: threading.Event | None = None,
        hooks: PipelineHooks | None = None,
    ):
        self.max_iterations, self.deadline_s, self.cancel = max_iterations, deadline_s, cancel
        self.hooks = hooks or NoopHooks()

    def _stopped(self, deadline: float | None) -> bool:
        if self.cancel is not None and self.cancel.is_set():
            return True
        return deadline is not None and time.monotonic() >= deadline

    def _solve(self, d, end):
        order = np.array(NearestNeighborSolver()._solve(d, end), dtype=int)
        n = len(order)
        hi = n - 1 if end is None else n - 2  # last position a reversal may touch
        best = tour_length(order, d)
        max_iter = self.max_iterations if self.max_iterations is not None else n * n
        deadline = time.monotonic() + self.deadline_s if self.deadline_s is not None else None

        improved, iterations = True, 0
        while improved and iterations < max_iter:
            improved = False
            iterations += 1
            for i in range(1, hi):
                for j in range(i + 1, hi + 1):
                    cand = order.copy()
                    cand[i : j + 1] = cand[i : j + 1][::-1]
                    length = float(d[cand[:-1], cand[1:]].sum())
                    if length < best:
                        order, best, improved = cand, length, True
                if self._stopped(deadline):
                    log.info("two_opt stopped early", extra={"extra": {"iterations": iterations}})
                    return order.tolist()
            self.hooks.sweep(iteration=iterations, length=best)
        return order.tolist()


@dataclass
class PlannedTour:
    order: Tour
    length: float
    solver: str


class RouteOptimizer:
    """
    Picks a solver by stop count: brute force up to ``brute_force_max``,
    Held-Karp up to ``held_karp_max``, nearest neighbour + 2-opt beyond.
    Passing ``solver`` forces one algorithm for every size.
    """

    def __init__(
        self,
        *,
        brute_force_max: int = 4,
        held_karp_max: int = 15,
        solver: TourSolver | None = None,
        two_opt: TwoOptSolver | None = None,
        hooks: PipelineHooks | None = None,
    ):
        if brute_force_max > held_karp_max:
            raise MalformedQueryError("brute_force_max must not exceed held_karp_max")
        self.brute_force_max, self.held_karp_max = brute_force_max, held_karp_max
        self.forced = solver
        self.hooks = hooks or NoopHooks()
        self.two_opt = two_opt or TwoOptSolver(hooks=self.hooks)

    def choose(self, n: int) -> TourSolver:
        if self.forced is not None:
            return self.forced
        if n <= self.brute_force_max:
            return BruteForceSolver()
        if n <= self.held_karp_max:
            return HeldKarpSolver(max_n=max(self.held_karp_max, 20))
        return self.two_opt

    def optimize(self, dist, *, end: int | None = None) -> PlannedTour:
        d = validate_matrix(dist)
        n = d.shape[0]
        solver = self.choose(n)
        t0 = time.perf_counter()
        self.hooks.solve_start(solver=solver.name, n=n)
        order = solver.solve(d, end=end)
        length = tour_length(order, d)
        self.hooks.solve_end(
            solver=solver.name, n=n, length=length, ms=(time.perf_counter() - t0) * 1000
        )
        return PlannedTour(order, length, solver.name)
