"""
Holdings engine: collection catalog, membership sets, aggregation, rewards and roles.
"""
