"""Domain models: request descriptors, responses and pipeline configuration."""
