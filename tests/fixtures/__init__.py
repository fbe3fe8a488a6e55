"""Sample page content shared by unit tests."""
