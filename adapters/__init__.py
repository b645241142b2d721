"""
Adapters: thin Google API wrappers.

Network I/O lives here; parsing raw responses into models.py types too.
"""
