"""Source list parsing and resolution."""
