# Services package init
"""
Things API: Services Layer
============================

What:  Business logic between routes (HTTP) and the database (persistence).

Service Inventory:
    - ThingService: CRUD and validation rules for the `things` collection
"""
