"""Distributed-systems building blocks: simulated RPC, MapReduce, a key/value client and model."""

__version__ = "0.1.0"