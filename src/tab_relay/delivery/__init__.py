"""Screenshot and log delivery."""
