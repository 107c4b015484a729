# Routes package init
"""
StreetPaws Backend — API Routes Package
=========================================

Route Inventory:
    - pets.py:    /api/pets               list/search, create
                  /api/pets/stats/overview
                  /api/pets/{id}           get (counts a view), update, soft delete
                  /api/pets/{id}/comments  add comment
                  /api/pets/comments/{id}  remove comment
                  /api/pets/{id}/cheer     toggle cheer
    - users.py:   /api/users/profile, /api/users/{id}, /{id}/pets, /{id}/stats
    - auth.py:    /api/auth/register, login, me, logout, updatedetails, updatepassword
    - health.py:  /health
    (WS /ws lives in streetpaws.realtime.routes)

Routes stay thin: parse the request, resolve the caller, call a service,
wrap the result in the response envelope.
"""
