"""walktrack - GPS walk tracking with distance, duration and calorie estimates."""

__version__ = "0.1.0"
