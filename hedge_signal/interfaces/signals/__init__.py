"""HTTP interface for the signals bounded context."""
