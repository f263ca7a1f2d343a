"""Toolchain and matrix execution."""
