"""HTTP calling layer for the booking engine."""
