"""stackctl: docker-compose workflows for the development and production stacks."""

__version__ = "0.1.0"
