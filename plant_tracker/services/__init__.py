# Services package init
"""
Office Plant Tracker Backend — Services Layer
=============================================

What:  Business logic between routes (HTTP) and the database (persistence).
How:   Stateless service objects; the AsyncSession of the current request is
       passed into every call.

Service Inventory:
    - LocationService: location tree store (lookup, validated create, paths)
    - PlantService:    plant catalog store (CRUD, search, filter, upsert)
    - CsvService:      upload validation and CSV → ImportRow parsing
    - ImportService:   hierarchy materializer for one CSV batch
    - QueryService:    read-only views (plants with paths, zone lists, stats)
"""
