"""
Companion API — Application Package Initializer
================================================

What: Marks the `companion_api` directory as a Python package.
Who:  Used implicitly by Python's import system and explicitly by pytest and uvicorn.

Architecture Note:
    Every endpoint is a thin translation of one HTTP request into one to three
    calls against the managed platform (auth, records, object storage).

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← methods, request parsing, envelope
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← per-resource workflows
    ├─────────────────────────────────────┤
    │        Schemas (API contracts)      │  ← Pydantic models
    ├─────────────────────────────────────┤
    │   Platform (Resource Accessor)      │  ← httpx calls to auth/rest/storage
    └─────────────────────────────────────┘

    Nothing is cached between requests; the only shared object is the
    pooled HTTP client owned by the platform layer.
"""

__version__ = "1.0.0"
