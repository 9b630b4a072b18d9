"""Storefront API.

Catalog, checkout, customer accounts and the admin back-office of an online
shop, exposed as a FastAPI application backed by SQLModel.
"""

__version__ = "0.1.0"
