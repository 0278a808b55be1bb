"""JSON-RPC over stdio: envelopes, MCP method routing, the transport loop and the process entry point."""
