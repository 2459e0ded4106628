"""Data layer: backend gateway, repositories, records and the request cache."""
