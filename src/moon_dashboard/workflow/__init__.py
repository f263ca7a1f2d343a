"""Stat workflow: channel passes and their graph."""
