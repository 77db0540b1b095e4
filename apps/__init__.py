"""Domain applications of the AdventureMate API."""
