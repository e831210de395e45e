"""User-facing prompts and notices."""
