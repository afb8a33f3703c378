"""
Companion API — Route Modules

Thin handlers: resolve the caller, read parameters, call one service
method, wrap the result in the envelope. All under /api except /health.
"""
