"""
System operations:
- call_tool: Universal proxy for executing discovered tools
- discovery_status: Readiness and per-manual connection status
"""

__all__ = ['call_tool', 'discovery_status']
