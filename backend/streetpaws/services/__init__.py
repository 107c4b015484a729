# Services package init
"""
StreetPaws Backend — Services Layer
=====================================

What:  Business rules between the routes (HTTP) and the database.
How:   Each service is a stateless class with a module-level singleton. Every
       method takes the request's AsyncSession and, where it matters, the
       authenticated User, and raises errors from streetpaws.exceptions.

Service Inventory:
    - PetService:  listings, views, comments, cheers, statistics; pushes
                   comment/cheer events to the realtime hub
    - UserService: registration, login, bearer tokens, profile and password
"""
