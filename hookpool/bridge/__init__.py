"""Bridges to external services.

``hookpool.bridge.discord`` is the Discord REST client.  The core only
depends on the handful of coroutine methods it exposes, so tests swap
in an in-memory fake with the same surface.
"""
