"""Domain models for the doccontrol feature."""
