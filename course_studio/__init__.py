"""Course Studio: streamed LLM generation of Chinese-English practice courses."""

__version__ = "0.1.0"
