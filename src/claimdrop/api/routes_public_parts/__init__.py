# src/claimdrop/api/routes_public_parts/__init__.py
"""Public HTTP route groups, mounted under /v1 by routes_public."""
