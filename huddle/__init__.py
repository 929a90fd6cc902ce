"""Huddle backend: highlight sharing and digests for small private groups."""
