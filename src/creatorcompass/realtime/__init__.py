"""Real-time delivery — per-user server-sent-event streams.

Events flow in one process only:
1. A request handler mutates state, then calls ConnectionManager.publish()
2. publish() writes a frame into the user's open StreamHandle, if any
3. The SSE response generator drains the handle and writes to the client

Delivery is best effort. A user with no open stream on this process, or a
stream that has already closed, simply misses the event; clients recover by
re-fetching over the REST API.
"""
