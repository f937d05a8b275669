"""auth/ -- Authentication and authorization package for the Portfolio API.

Layer rule: auth/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/ or portfolio/.
api/ and portfolio/ import from auth/, not the other way around.
"""
