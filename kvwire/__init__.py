"""
KV-Wire: Length-Framed Key-Value Store

A small in-memory key-value store served over a text-delimited,
length-framed TCP protocol, with a matching interactive/batch client.
"""

__version__ = "1.0.0"
