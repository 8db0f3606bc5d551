"""Voice line that collects student-housing preferences and texts back matches."""
