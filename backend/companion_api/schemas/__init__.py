"""
Companion API — Schemas Package
================================

What:  Pydantic models describing the API contract.
    - envelope.py:  success/failure envelopes, initialize and health responses
    - caller.py:    the verified caller identity
    - requests.py:  JSON request bodies and operation selectors
"""
