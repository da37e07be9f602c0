"""Data shapes and collaborator interfaces used across hoverhits."""
