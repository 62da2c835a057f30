"""HTTP surface for the privacy gate."""
