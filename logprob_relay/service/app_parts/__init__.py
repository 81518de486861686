"""Service internals shared by the route modules."""
