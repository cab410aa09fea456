"""
roadwatch — voice road-hazard intake.
Transcript → intent → scored, geocoded hazard → remote store (local fallback).
"""

__version__ = '1.0.0'
