"""TMDB source extractors: the locator is a TMDB id (plus episode for shows)."""
