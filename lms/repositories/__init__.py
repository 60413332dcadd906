"""Repository implementations package."""
from .memory import InMemoryCollection, InMemoryDatabase
from .seed import load_demo_data

__all__ = [
    "InMemoryCollection",
    "InMemoryDatabase",
    "load_demo_data",
]
