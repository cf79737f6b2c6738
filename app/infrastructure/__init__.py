"""Infrastructure modules for the recovery service.

Centralized infrastructure components:
- configuration: Settings management (Settings, RecoverySettings, SweepSettings)
- logging: Structured logging (configure_logging, get_module_logger)
- operations: Operation results, typed errors and error classification
- persistence: Durable key-value store for retry records and fallback values
- scheduling: Scheduler abstraction and sweep base class
- resilience: Retry executor, circuit breakers, fallbacks, ResilienceService
- services: Settings provider (get_settings)
"""
