"""statusrelay -- WebSocket relay for HTTP game-server status documents.

A client opens a persistent WebSocket, picks an upstream status URL with
SETTARGET, and polls it with READYFORDATA. The relay fetches the upstream
JSON document, keeps it briefly in a process-wide cache, and answers with a
compact 0x07-delimited projection of its fields.
"""

__version__ = "0.1.0"
