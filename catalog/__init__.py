"""
Book catalog core.

This package provides:
- Book record models and payload validation
- MongoDB record store
- CRUD repository
- Fuzzy search pipeline
"""
