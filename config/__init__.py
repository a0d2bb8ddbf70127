"""Settings for the Cues CLI."""
