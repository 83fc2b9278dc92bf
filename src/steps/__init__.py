"""External step catalogues and invoker."""
