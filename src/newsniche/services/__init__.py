"""Domain services for the submission workflow."""
