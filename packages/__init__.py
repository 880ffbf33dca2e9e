"""
Packages module.

Contains:
- beer_stream: paginated beer pipeline, Punk API client and CLI
"""
