"""
Companion API — Services Package
=================================

What:  Business logic, one module per resource family.
How:   Services take a PlatformClient (and Settings where bucket names
       matter), raise CompanionAPIError subclasses, and know nothing about
       HTTP requests or envelopes.
"""
