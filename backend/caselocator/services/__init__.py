# Services package init
"""
CaseLocator Backend — Services Layer
=====================================

What:  Location lookup, failover and cascade logic, independent of HTTP.

Service Inventory:
    - LocationProvider (abstract): countries / states / cities contract
    - RemoteLocationProvider: Country State City API over httpx, circuit breaker
    - FallbackLocationProvider: bundled offline dataset
    - LocationDirectory: remote-then-fallback failover, DataSource tagging
    - RequestDeduplicator: at most one in-flight request per RequestKey
    - DebouncedSearchIndex: quiescence-window city search
    - CoordinateGenerator: representative point per country
    - LocationCascadeController: per-form state machine
    - SessionRegistry: open form sessions
    - gps_parser: stored case coordinates → Coordinates
"""
