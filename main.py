# main.py
from aisle_router.app.build import build
from aisle_router.app.planner import Stop


def run():
    nav = build({"name": "demo", "buffer": {"radius": 1}})

    # outer walls of a 40 x 20 store with one shelf row in the middle
    entities = [
        {"type": "LWPOLYLINE", "vertices": [(0, 0), (40, 0), (40, 20), (0, 20)], "closed": True},
        {"type": "LINE", "start": {"x": 8, "y": 10}, "end": {"x": 32, "y": 10}},
    ]
    grid = nav.load_layout(entities)

    stops = [
        Stop("entrance", 3, 3, is_start=True),
        Stop("dairy", 20, 15, categories=frozenset({"milk"})),
        Stop("bakery", 35, 5, categories=frozenset({"bread"})),
        Stop("produce", 6, 16, categories=frozenset({"fruit"})),
        Stop("checkout", 36, 16, is_end=True),
    ]
    route = nav.plan(grid, stops, categories={"milk", "bread"})
    print([s.id for s in route.stops], round(route.total_distance, 2))


if __name__ == "__main__":
    run()
