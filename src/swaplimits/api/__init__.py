"""HTTP surface for the swap limit engine."""
