"""
Catalog operations over discovered tools:
- list_tools: Names of every discovered tool
- tool_info: Description and input schema of one tool
- get_required_keys_for_tool: Environment variables a tool's manual needs
"""
