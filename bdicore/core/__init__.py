"""
bdicore.core - Registry and Lifecycle Events

- ReasoningRegistry: per-agent partitions behind per-agent locks
- EventQueue: outbound lifecycle events for collaborators to poll
"""

__all__: list[str] = []
