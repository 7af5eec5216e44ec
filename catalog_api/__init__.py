"""
FastAPI REST API for the Book Catalog.

This package provides:
- User registration and login with bcrypt password hashing
- JWT bearer tokens carried in the request body
- Authenticated book create, update, delete, list and filter operations
- MongoDB persistence through motor
"""
