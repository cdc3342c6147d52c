"""Rules that act on the world model: sight, commands, combat and rounds."""
