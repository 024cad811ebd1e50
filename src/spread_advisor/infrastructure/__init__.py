"""
Infrastructure Components

- networking: HTTP/WebSocket transport
- logging: structured logging with keyword context and metric counters
- decorators: retry policies for REST requests
- exceptions: system-wide exception definitions
"""
