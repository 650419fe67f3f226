from .components import Ghost, Health, Position, Renderable, Velocity

__all__ = ["Ghost", "Health", "Position", "Renderable", "Velocity"]
