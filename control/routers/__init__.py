# Control Routers
from control.routers import control

__all__ = ["control"]
