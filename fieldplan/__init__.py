"""Coverage path planning over field images, with occupancy-grid map loading and saving."""

__version__ = "0.1.0"

__all__ = [
    "bezier",
    "coverage",
    "image_loader",
    "line",
    "map_saver",
    "map_server",
    "node",
    "planner",
    "subregion",
    "transform",
]