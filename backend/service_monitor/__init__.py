"""Service monitor - periodic HTTP health checks with multi-channel alerting."""
