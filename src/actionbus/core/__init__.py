"""Core building blocks shared by the bus modules."""
