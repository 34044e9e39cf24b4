"""Building blocks for an administrative RocketMQ client: errors, name server selection, broker data models, response processing and a group registry."""

__version__ = "0.1.0"
__all__ = ["client", "constants", "errors", "model", "namesrv", "perm", "protocol"]