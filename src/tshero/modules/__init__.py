"""Feature modules: extraction, indexing, resolution and import organization."""
