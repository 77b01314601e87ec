"""Business logic for identity, bookmarks, news and images."""
