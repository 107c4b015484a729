# Realtime package init
"""
StreetPaws Backend — Real-time Notifications
==============================================

    - hub.py:     ChannelHub (per-pet channels, best-effort broadcast)
    - routes.py:  WS /ws endpoint speaking the join/leave protocol
"""
