"""autorip - automatic disc ripping for optical drives."""

__version__ = "0.1.0"
