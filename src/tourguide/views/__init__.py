"""Qt views for the tour overlay."""
