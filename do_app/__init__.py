"""
Do client feature layer.

Async service classes for the Do fitness and wellness backend.
"""
