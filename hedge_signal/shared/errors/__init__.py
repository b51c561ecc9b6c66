"""Translation of signal domain errors into HTTP responses."""
