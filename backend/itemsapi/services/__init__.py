# Services package init
"""
Items API — Services Layer
===========================

Service Inventory:
    - RecordStore / SqlRecordStore:          prepared-statement access to the database
    - ResponseCache / MemoryResponseCache:   TTL cache of full HTTP responses
    - ItemService:                           SQL for the item endpoints
    - BenchmarkService:                      sequential latency probe

Services never see HTTP objects; routes pass them the collaborators from
the request's Bindings.
"""
