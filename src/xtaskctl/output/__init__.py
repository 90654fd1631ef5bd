"""Output layer: Rich rendering, JSON formatting, and log groups."""
