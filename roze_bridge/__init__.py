"""Roze Bridge.

This package contains a JSON-RPC protocol bridge that lets independent client
applications share one API contract and one validation/dispatch path when
talking to the Roze backend.

High-level architecture
-----------------------

Requests arrive as newline-delimited JSON-RPC envelopes on stdin and every
request with an id receives exactly one response line on stdout. A
``tools/call`` request flows through a fixed pipeline:

1. Required-argument and target check.
2. Proxy policy gate for the requested environment target.
3. Remaining argument checks against the tool's input schema, then contract
   validation of the payload (OpenAPI + JSON Schema documents).
4. Backend call through a transport-agnostic gateway.

Core subpackages
----------------

- ``roze_bridge.core``: settings, logging, monitoring and the error taxonomy.
- ``roze_bridge.contracts``: the contract store and the contract documents.
- ``roze_bridge.gateway``: backend strategies (generic HTTP and callable
  functions) normalized into ``GatewayResult``.
- ``roze_bridge.tools``: tool definitions, the registry and the dispatcher.
- ``roze_bridge.server``: JSON-RPC envelopes, method routing and the stdio
  transport loop.
"""

__version__ = "1.0.0"
