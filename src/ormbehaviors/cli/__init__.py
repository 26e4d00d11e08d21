"""ormbehaviors command line interface."""
