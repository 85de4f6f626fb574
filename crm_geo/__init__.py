"""
Geocoding and route caching for the bathtub-coating CRM
"""
__version__ = "1.0.0"
