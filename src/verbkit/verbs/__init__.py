"""Built-in verb handlers and their candidate tables."""
