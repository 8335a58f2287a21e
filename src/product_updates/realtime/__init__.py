"""Real-time infrastructure — the product hub and its WebSocket endpoint.

Learn: Events flow one way:
1. ProductService → hub.broadcast() (optionally via the Redis backplane)
2. hub → every connected WebSocket session

Clients never poll; they load a snapshot once over HTTP and then apply
pushed events.
"""
