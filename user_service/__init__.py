"""
Storefront User Service.

Authentication, profile, address and user administration endpoints.
"""

__version__ = "1.0.0"
