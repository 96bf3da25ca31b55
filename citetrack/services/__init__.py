"""
Citetrack Services Layer

Wires repository, engine clients, orchestrator and scheduler together.
"""

from .tracking import TrackingServices, build_services

__all__ = ["TrackingServices", "build_services"]
