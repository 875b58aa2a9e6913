"""Record package for the education-management backend.

This package exposes the student and test value objects, the question
content codec, the in-memory services and the FastAPI application. It is
intentionally lightweight; individual modules contain the concrete
implementations and documentation.
"""
