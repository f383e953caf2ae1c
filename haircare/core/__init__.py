"""Request-level plumbing: dependencies and the session gate."""
