"""Family Spots API: cached spot and event search."""
