from .cli import FibonacciCLI

__all__ = ["FibonacciCLI"]
