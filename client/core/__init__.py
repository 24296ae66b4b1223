from .network import FibonacciClient, NetworkError

__all__ = ["FibonacciClient", "NetworkError"]
