"""Mooncakes registry index and archive downloads."""
