from .fibonacci import fib

__all__ = ["fib"]
