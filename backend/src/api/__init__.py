"""HTTP layer: application factory, dependencies and routers."""
