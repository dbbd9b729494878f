"""Wallet-scoped file storage gateway: S3-compatible bucket plus SQL metadata."""
