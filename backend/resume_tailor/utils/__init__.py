from .timers import DelayedCall

__all__ = ["DelayedCall"]
