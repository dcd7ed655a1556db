"""
KV-Store: Networked In-Memory Key-Value Store

A small key-value store served over HTTP with Python asyncio. Values live
under /store/<key> and support PUT, GET and DELETE.
"""

__version__ = "1.0.0"
