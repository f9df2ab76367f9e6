"""External services used by the review action."""
