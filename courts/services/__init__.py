"""Discovery services: court filter, deduplication, search-area tracking, pipeline."""
