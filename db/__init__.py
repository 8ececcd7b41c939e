"""
db/ - Database Layer
====================
Handles the store connection (PostgreSQL or SQLite), schema bootstrap,
and the driver error types the repositories translate.
This layer is the lowest in the architecture and has no dependencies on other layers.
"""
