"""Client for the repository WebJars are published to."""
