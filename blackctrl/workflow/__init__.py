"""Generation lifecycle, message history and exports."""
