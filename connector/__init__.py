"""BBVA bank-account connector."""
