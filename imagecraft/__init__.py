"""imagecraft: multi-provider AI image generation backend."""

__version__ = "0.1.0"
