"""
Trail Elevation Enrichment Scripts Package

This package contains the elevation enrichment pipeline organized into logical
subdirectories:

- collectors/: Clients for external data sources (USGS Elevation Point Query Service)
- processors/: Geometry sampling, aspect estimation, and profile interpolation
- storage/: Trail dataset schemas and checkpointed file persistence
"""
