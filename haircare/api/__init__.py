"""HTTP surface: auth, routes and middleware."""
