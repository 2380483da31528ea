"""Storefront — e-commerce backend.

Product catalog, cart, checkout, and admin management behind
JWT authentication, with Redis holding refresh tokens, carts,
sessions, catalog caches, and rate-limit counters.
"""

__version__ = "0.1.0"
