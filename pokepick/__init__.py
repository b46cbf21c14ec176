"""Pokepick package initializer.

Makes `pokepick` importable so tests and WSGI servers can load
`pokepick.PokeApp` directly.
"""

__all__ = ["PokeApp"]
