"""
FastAPI RESTful API for the Library Management service.

This module provides:
- Book CRUD endpoints with pagination
- Fuzzy search over title, author, and genre
- Request logging, security headers, and rate limiting
"""
