"""Asyncio client for SPD3303X programmable power supplies over TCP."""

__version__ = "0.1.0"