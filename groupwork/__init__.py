"""Group task collaboration backend."""
