"""Storage, alias, search and clipboard core."""
