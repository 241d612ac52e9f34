"""trackgen: scheduled AI music generation, tracking and cataloging."""

__version__ = "0.4.0"
