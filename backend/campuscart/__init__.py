"""Campus Cart real-time backend."""
