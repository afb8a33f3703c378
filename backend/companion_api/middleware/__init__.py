"""
Companion API — Middleware Package

Order (outermost first): RequestID → RequestLogging → CORSHeaders → routes
"""
