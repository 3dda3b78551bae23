"""fleetlog MCP: diagnostic log collection from remote instance fleets."""
