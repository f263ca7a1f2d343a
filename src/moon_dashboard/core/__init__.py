"""Configuration, logging, process execution and result records."""
