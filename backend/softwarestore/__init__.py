"""Application package for the Software Store catalog backend.

This package exposes the service, repository and model modules used by
the FastAPI application. Authors submit zipped programs through the
submission pipeline in `services`; visitors browse the catalog grouped
by category. Individual modules contain the concrete implementations.
"""
