"""
Data Collection Scripts

This module contains clients for external data sources:
- USGS Elevation Point Query Service for point elevations
"""
