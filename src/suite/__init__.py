from .harness import Suite

__all__ = ["Suite"]
