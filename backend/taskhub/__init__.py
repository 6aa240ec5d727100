"""TaskHub personal task service."""
