"""Maven artifact repository server with a transactional catalog."""

__version__ = "0.1.0"
