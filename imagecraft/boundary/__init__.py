"""
Boundary layer for external system integrations.

Handles all interactions with external systems (database, S3, image
providers). Provides adapters and clients for infrastructure dependencies.
"""
