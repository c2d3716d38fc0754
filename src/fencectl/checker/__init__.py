"""External checker invocation and diagnostic translation."""
