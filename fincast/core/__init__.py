"""Document model, storage and errors."""
