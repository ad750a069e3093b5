"""
Manual management operations:
- register_manual: Connect a new upstream tool provider
- deregister_manual: Disconnect a provider and drop its tools
"""
