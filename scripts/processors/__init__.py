"""
Data Processing Scripts

This module contains the per-trail computations of the enrichment pipeline:
- Sampling evenly spaced points along trail geometry
- Dominant aspect estimation from segment bearings
- Interpolated profiles and elevation gain
"""
