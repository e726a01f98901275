"""Script engine and automation driver."""
