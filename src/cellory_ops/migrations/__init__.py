"""Schema migration deployment with retry supervision."""
