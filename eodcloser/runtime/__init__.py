"""
Runtime loop and component wiring.
"""

from .app import (
    Components,
    RunOptions,
    build_components,
    build_messengers,
    run_app,
    run_simulation,
    tick,
)

__all__ = [
    "Components",
    "RunOptions",
    "build_components",
    "build_messengers",
    "run_app",
    "run_simulation",
    "tick",
]
