"""
Core upload and gallery logic.

This package is framework-agnostic: it doesn't import FastAPI or boto3.
Storage is reached through the `StorageClient` protocol in `storage.py`,
so every component can be exercised against the in-memory mock.
"""
