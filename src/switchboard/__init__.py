"""Switchboard - request translation gateway for chat completion APIs.

Switchboard accepts chat requests written with structured content blocks
and named tool declarations, rewrites them into function-calling
requests, and forwards them to a single backend.

Layers:
    core/       Logging configuration
    gateway/    Proxy server, request transforms and backend client
    frontends/  Command line interface

Quick Start (translate a request body):
    >>> from switchboard.gateway.transforms import translate_request
    >>> result = translate_request({
    ...     "model": "x",
    ...     "messages": [{"role": "user", "content": [{"type": "text", "text": "hi"}]}],
    ... })
    >>> result.payload["messages"]
    [{'role': 'user', 'content': [{'type': 'text', 'text': 'hi'}]}]

Run the gateway:
    $ switchboard serve --port 8080 --backend-url http://localhost:8000/v1/chat/completions
"""

__version__ = "0.1.0"
