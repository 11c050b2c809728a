"""
Core infrastructure layer.

- Configuration (`Config`, environment driven)
- Database subsystem (`DatabaseService`, declarative `Base`)
- Redis subsystem (`RedisService`, distributed locks)
- Logging (structured logging, `LogContext`)
- In-process event bus
- Service container
"""
