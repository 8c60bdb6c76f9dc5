"""HTTP binding for the health monitor."""
