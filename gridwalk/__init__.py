"""Real-time grid movement server.

Players move on a 2D grid over a WebSocket; bursts of moves become game sessions
that close after a period of inactivity and report the distance traveled.
"""
