"""Git checkout helpers."""
