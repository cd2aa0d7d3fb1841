"""File manager web application."""
