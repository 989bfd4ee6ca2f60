"""
Integrations package for external catalog services.
"""
