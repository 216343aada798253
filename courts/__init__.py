"""
Court directory Django application.

This app owns the court directory records and the discovery pipeline that
fills it from an external places provider: search, filtering,
deduplication, search-area recency tracking, queued discovery jobs and
the periodic scheduler.
"""
