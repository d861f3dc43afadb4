"""Natural-language contracts and deterministic fallbacks."""
