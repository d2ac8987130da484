from .app import DagDashApp

__all__ = ["DagDashApp"]
