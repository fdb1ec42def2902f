"""
pipetunnel - transparent TCP tunnel with an optional TLS-terminating server.

Two roles share one relay engine:
    client  127.0.0.1:LOCAL_PORT  -> SERVER_HOST:SERVER_PORT
    server  0.0.0.0:TUNNEL_PORT   -> TARGET_HOST:TARGET_PORT (plain or TLS)
"""

__version__ = "0.1.0"
