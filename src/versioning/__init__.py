"""Version parsing, models and selection policy."""
