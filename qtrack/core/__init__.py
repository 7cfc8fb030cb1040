"""Infrastructure shared by the data and portfolio layers."""
