"""Infrastructure layer — stateful services around the pure spectral core.

Modules:
    cache               In-memory LRU + TTL cache of session results.
    metrics             Prometheus metrics registry.
    session_controller  Coalescing recomputation of the views on parameter change.
"""
