"""Database-backed sessions and the recoverable-error classifier guarding them."""
