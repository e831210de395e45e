"""Monitor a browser tab and relay captures through the clipboard."""
