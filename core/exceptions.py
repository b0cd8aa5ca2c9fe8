class InvalidInput(ValueError):
    """A value is not a member of the scale it was given for."""
