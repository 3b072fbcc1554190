"""Services for the filter query bar."""
