"""moon-dashboard - MoonBit toolchain compatibility dashboard."""
