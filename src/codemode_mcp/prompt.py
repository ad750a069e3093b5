PROMPTS = {
    "codemode_usage": """# Code Mode Bridge Usage Guide

You have access to a bridge that aggregates tools from several upstream MCP servers.
Only a handful of bridge operations are listed directly; every upstream tool is reached through them.

## Workflow: Always Follow This Pattern

### 1. Discover tools first
- Use `search_tools` with a description of your task to find relevant tools{focus}
- Results include each tool's name and input schema - study them carefully
- Use `tool_info` to get the full schema of a specific tool if needed
- Use `list_tools` only when you need every tool name

### 2. Call the tool
- Use `call_tool` with `tool_name` (as returned by search) and `arguments` matching the input schema
- Pass `timeout` (milliseconds) for slow tools and `max_output_size` to bound large results

### 3. When something is missing
- `discovery_status` shows which upstream servers are connected and how many tools were found
- `get_required_keys_for_tool` lists the environment variables a tool's server expects
- `register_manual` connects an additional upstream server at runtime

Remember: search before calling, and prefer the most specific tool for the task.
""",
}
