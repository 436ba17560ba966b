"""
Infrastructure layer - external service integrations.

- storage: Object storage (R2/S3) via boto3, plus an in-memory mock

These wrappers translate between boto3 responses and our domain models.
"""
